# forum_api/deps/forum.py
from fastapi import Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.database import get_async_session
from forum_api.models.forum_model import Category, Reply, Thread


async def get_category_from_path(
    category_slug: str,
    db: AsyncSession = Depends(get_async_session),
) -> Category:
    category = (
        await db.execute(select(Category).where(Category.slug == category_slug))
    ).scalars().first()
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


async def get_thread_from_path(
    category_slug: str,
    thread_slug: str,
    db: AsyncSession = Depends(get_async_session),
) -> Thread:
    """Resolve ``/{category_slug}/{thread_slug}`` to a thread or 404."""
    thread = (
        await db.execute(
            select(Thread)
            .join(Category, Category.id == Thread.category_id)
            .where(Category.slug == category_slug, Thread.slug == thread_slug)
        )
    ).scalars().first()
    if not thread:
        raise HTTPException(status_code=404, detail="Thread not found")
    return thread


async def get_reply_from_path(
    reply_id: int,
    db: AsyncSession = Depends(get_async_session),
) -> Reply:
    reply = await db.get(Reply, reply_id)
    if not reply:
        raise HTTPException(status_code=404, detail="Reply not found")
    return reply
