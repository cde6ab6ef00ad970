import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from slugify import slugify
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, THREAD_CREATE_RATE
from forum_api.database import get_async_session
from forum_api.deps.forum import get_category_from_path, get_thread_from_path
from forum_api.limiter import limiter
from forum_api.models.favorite_model import Favorite
from forum_api.models.forum_model import Category, Reply, Thread
from forum_api.models.user_model import User
from forum_api.schemas.forum_schemas import (
    CreateThreadIn, PageMeta, ThreadPageResponse, ThreadResponse, UpdateThreadIn,
)
from forum_api.utils.forum_mappers import thread_to_out, threads_to_out
from forum_api.utils.slugs import RESERVED_THREAD_SLUGS, next_free_slug
from forum_api.utils.token_utils import get_current_user, get_current_user_optional

logger = logging.getLogger(__name__)

router = APIRouter(tags=["threads"])


# ------------------------------
# helpers
# ------------------------------
def _ensure_thread_creator(thread: Thread, user: User, action: str) -> None:
    if thread.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only the thread creator may {action} this thread.",
        )


async def _unique_thread_slug(db: AsyncSession, category_id: int, title: str) -> str:
    base = slugify(title, max_length=200, word_boundary=True) or "thread"
    taken = set(
        (
            await db.execute(
                select(Thread.slug).where(
                    Thread.category_id == category_id,
                    Thread.slug.like(f"{base}%"),
                )
            )
        ).scalars().all()
    )
    return next_free_slug(base, taken | RESERVED_THREAD_SLUGS)


async def _paged_threads(
    db: AsyncSession,
    viewer: Optional[User],
    page: int,
    page_size: int,
    category_id: Optional[int] = None,
) -> ThreadPageResponse:
    filters = []
    if category_id is not None:
        filters.append(Thread.category_id == category_id)

    total_stmt = select(func.count(Thread.id))
    if filters:
        total_stmt = total_stmt.where(*filters)
    total = int((await db.execute(total_stmt)).scalar_one() or 0)

    # page rows (stable order)
    stmt = select(Thread).order_by(Thread.created_at.desc(), Thread.id.desc())
    if filters:
        stmt = stmt.where(*filters)
    stmt = stmt.offset((page - 1) * page_size).limit(page_size)
    rows = (await db.execute(stmt)).scalars().all()

    total_pages = max(1, math.ceil(total / page_size))
    return ThreadPageResponse(
        data=await threads_to_out(db, rows, viewer),
        meta=PageMeta(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=total_pages,
            has_prev=page > 1,
            has_next=page < total_pages,
        ),
    )


# ------------------------------
# Routes
# ------------------------------
@router.get("/threads", response_model=ThreadPageResponse)
async def list_threads(
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_async_session),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    return await _paged_threads(db, viewer, page, page_size)


@router.post("/threads", response_model=ThreadResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(THREAD_CREATE_RATE)
async def create_thread(
    request: Request,
    payload: CreateThreadIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    category = await db.get(Category, payload.category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")

    slug = await _unique_thread_slug(db, category.id, payload.title)
    thread = Thread(
        category=category,
        creator=user,
        slug=slug,
        title=payload.title.strip(),
        body=payload.body,
    )
    db.add(thread)
    try:
        await db.commit()
    except IntegrityError:
        # another thread took the same slug between lookup and insert
        await db.rollback()
        logger.info("thread slug %r collided on insert in category %s", slug, payload.category_id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Thread slug already taken, please retry")

    logger.info("thread %s (%s/%s) created by user %s", thread.id, category.slug, thread.slug, user.id)
    return ThreadResponse(data=await thread_to_out(db, thread, user))


@router.get("/{category_slug}/threads", response_model=ThreadPageResponse)
async def list_category_threads(
    category: Category = Depends(get_category_from_path),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_async_session),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    return await _paged_threads(db, viewer, page, page_size, category_id=category.id)


@router.get("/{category_slug}/{thread_slug}", response_model=ThreadResponse)
async def show_thread(
    thread: Thread = Depends(get_thread_from_path),
    db: AsyncSession = Depends(get_async_session),
    viewer: Optional[User] = Depends(get_current_user_optional),
):
    return ThreadResponse(data=await thread_to_out(db, thread, viewer))


@router.put("/{category_slug}/{thread_slug}", response_model=ThreadResponse)
async def update_thread(
    payload: UpdateThreadIn,
    user: User = Depends(get_current_user),
    thread: Thread = Depends(get_thread_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    _ensure_thread_creator(thread, user, "edit")

    # slug stays put so existing links keep working
    if payload.title is not None:
        thread.title = payload.title.strip()
    if payload.body is not None:
        thread.body = payload.body

    await db.commit()

    logger.info("thread %s updated by user %s", thread.id, user.id)
    return ThreadResponse(data=await thread_to_out(db, thread, user))


@router.delete("/{category_slug}/{thread_slug}", status_code=204)
async def delete_thread(
    user: User = Depends(get_current_user),
    thread: Thread = Depends(get_thread_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    _ensure_thread_creator(thread, user, "delete")

    thread.best_reply_id = None
    await db.flush()

    reply_ids = select(Reply.id).where(Reply.thread_id == thread.id)
    await db.execute(
        delete(Favorite).where(
            Favorite.favoritable_type == Reply.favoritable_type,
            Favorite.favoritable_id.in_(reply_ids),
        )
    )
    await thread.clear_favorites(db)
    await db.execute(
        delete(Reply).where(Reply.thread_id == thread.id).execution_options(synchronize_session=False)
    )
    await db.delete(thread)
    await db.commit()

    logger.info("thread %s deleted by user %s", thread.id, user.id)
    return Response(status_code=204)
