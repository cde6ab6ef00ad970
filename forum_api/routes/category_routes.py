import logging

from fastapi import APIRouter, Depends, HTTPException, status
from slugify import slugify
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.database import get_async_session
from forum_api.deps.admin import require_admin
from forum_api.models.forum_model import Category
from forum_api.models.user_model import User
from forum_api.schemas.forum_schemas import CategoryListResponse, CategoryResponse, CreateCategoryIn
from forum_api.utils.forum_mappers import categories_to_out
from forum_api.utils.slugs import RESERVED_SLUGS

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=CategoryListResponse)
async def list_categories(db: AsyncSession = Depends(get_async_session)):
    rows = (await db.execute(select(Category).order_by(Category.name.asc(), Category.id.asc()))).scalars().all()
    return CategoryListResponse(data=await categories_to_out(db, rows))


@router.get("/{category_slug}", response_model=CategoryResponse)
async def show_category(category_slug: str, db: AsyncSession = Depends(get_async_session)):
    category = (
        await db.execute(select(Category).where(Category.slug == category_slug))
    ).scalars().first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return CategoryResponse(data=(await categories_to_out(db, [category]))[0])


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CreateCategoryIn,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    slug = payload.slug or slugify(payload.name, max_length=120, word_boundary=True)
    if not slug or slug in RESERVED_SLUGS:
        raise HTTPException(status_code=422, detail=f"Slug '{slug}' is not available")

    existing = (await db.execute(select(Category.id).where(Category.slug == slug))).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category slug already exists")

    category = Category(name=payload.name.strip(), slug=slug)
    db.add(category)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category slug already exists")

    logger.info("category %s created by admin %s", category.slug, admin.id)
    return CategoryResponse(data=(await categories_to_out(db, [category]))[0])
