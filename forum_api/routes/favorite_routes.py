import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.config import FAVORITE_RATE
from forum_api.database import get_async_session
from forum_api.deps.forum import get_reply_from_path, get_thread_from_path
from forum_api.limiter import limiter
from forum_api.models.favorite_model import Favoritable
from forum_api.models.forum_model import Reply, Thread
from forum_api.models.user_model import User
from forum_api.schemas.forum_schemas import FavoriteOut, FavoriteResponse
from forum_api.utils.token_utils import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["favorites"])


async def _favorite(db: AsyncSession, target: Favoritable, user: User) -> FavoriteResponse:
    await target.favorite(db, user)
    await db.commit()
    logger.info("user %s favorited %s %s", user.id, target.favoritable_type, target.id)
    return FavoriteResponse(data=FavoriteOut(favorited=True, favorites_count=await target.favorites_count(db)))


async def _unfavorite(db: AsyncSession, target: Favoritable, user: User) -> FavoriteResponse:
    if await target.unfavorite(db, user):
        await db.commit()
        logger.info("user %s unfavorited %s %s", user.id, target.favoritable_type, target.id)
    return FavoriteResponse(data=FavoriteOut(favorited=False, favorites_count=await target.favorites_count(db)))


@router.post("/replies/{reply_id}/favorites", response_model=FavoriteResponse)
@limiter.limit(FAVORITE_RATE)
async def favorite_reply(
    request: Request,
    user: User = Depends(get_current_user),
    reply: Reply = Depends(get_reply_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    return await _favorite(db, reply, user)


@router.delete("/replies/{reply_id}/favorites", response_model=FavoriteResponse)
async def unfavorite_reply(
    user: User = Depends(get_current_user),
    reply: Reply = Depends(get_reply_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    return await _unfavorite(db, reply, user)


@router.post("/{category_slug}/{thread_slug}/favorites", response_model=FavoriteResponse)
@limiter.limit(FAVORITE_RATE)
async def favorite_thread(
    request: Request,
    user: User = Depends(get_current_user),
    thread: Thread = Depends(get_thread_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    return await _favorite(db, thread, user)


@router.delete("/{category_slug}/{thread_slug}/favorites", response_model=FavoriteResponse)
async def unfavorite_thread(
    user: User = Depends(get_current_user),
    thread: Thread = Depends(get_thread_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    return await _unfavorite(db, thread, user)
