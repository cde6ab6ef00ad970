import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.config import REPLY_CREATE_RATE, REPLY_UPDATE_RATE
from forum_api.database import get_async_session
from forum_api.deps.forum import get_reply_from_path, get_thread_from_path
from forum_api.limiter import limiter
from forum_api.models.forum_model import Reply, Thread
from forum_api.models.user_model import User
from forum_api.schemas.forum_schemas import (
    BestReplyIn, BestReplyOut, BestReplyResponse, CreateReplyIn, ReplyListResponse, ReplyResponse, UpdateReplyIn,
)
from forum_api.utils.forum_mappers import reply_to_out, replies_to_out
from forum_api.utils.token_utils import get_current_user, get_current_user_optional

logger = logging.getLogger(__name__)

router = APIRouter(tags=["replies"])


# ------------------------------
# helpers
# ------------------------------
def _ensure_reply_owner(reply: Reply, user: User, action: str) -> None:
    if reply.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Only the reply owner may {action} this reply.",
        )


def _ensure_thread_creator(thread: Thread, user: User) -> None:
    if thread.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the thread creator may choose the best reply.",
        )


# ------------------------------
# Reply lifecycle
# ------------------------------
@router.post("/replies", response_model=ReplyResponse)
@limiter.limit(REPLY_CREATE_RATE)
async def create_reply(
    request: Request,
    payload: CreateReplyIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
):
    thread = await db.get(Thread, payload.thread_id)
    if not thread:
        raise HTTPException(status_code=404, detail="Thread not found")

    reply = Reply(thread_id=thread.id, creator=user, content=payload.content)
    db.add(reply)
    await db.commit()

    logger.info("reply %s created on thread %s by user %s", reply.id, thread.id, user.id)
    return ReplyResponse(data=await reply_to_out(db, reply, user))


@router.get("/replies/{reply_id}", response_model=ReplyResponse)
async def show_reply(
    reply: Reply = Depends(get_reply_from_path),
    viewer: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_async_session),
):
    return ReplyResponse(data=await reply_to_out(db, reply, viewer))


@router.put("/replies/{reply_id}", response_model=ReplyResponse)
@limiter.limit(REPLY_UPDATE_RATE)
async def update_reply(
    request: Request,
    payload: UpdateReplyIn,
    user: User = Depends(get_current_user),
    reply: Reply = Depends(get_reply_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    _ensure_reply_owner(reply, user, "update")

    reply.content = payload.content
    await db.commit()

    logger.info("reply %s updated by user %s", reply.id, user.id)
    return ReplyResponse(data=await reply_to_out(db, reply, user))


@router.delete("/replies/{reply_id}", status_code=204)
async def delete_reply(
    user: User = Depends(get_current_user),
    reply: Reply = Depends(get_reply_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    _ensure_reply_owner(reply, user, "delete")

    # a deleted reply can't stay the thread's best answer
    thread = await db.get(Thread, reply.thread_id)
    if thread and thread.best_reply_id == reply.id:
        thread.best_reply_id = None

    await reply.clear_favorites(db)
    await db.delete(reply)
    await db.commit()

    logger.info("reply %s deleted by user %s", reply.id, user.id)
    return Response(status_code=204)


@router.get("/{category_slug}/{thread_slug}/replies", response_model=ReplyListResponse)
async def list_thread_replies(
    thread: Thread = Depends(get_thread_from_path),
    viewer: Optional[User] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_async_session),
):
    replies = (
        await db.execute(
            select(Reply)
            .where(Reply.thread_id == thread.id)
            .order_by(Reply.created_at.asc(), Reply.id.asc())
        )
    ).scalars().all()
    data = await replies_to_out(db, replies, viewer, best_reply_ids={thread.id: thread.best_reply_id})
    return ReplyListResponse(data=data)


# ------------------------------
# Best reply (thread creator only)
# ------------------------------
@router.post("/{category_slug}/{thread_slug}/best-replies", response_model=BestReplyResponse)
async def mark_best_reply(
    payload: BestReplyIn,
    user: User = Depends(get_current_user),
    thread: Thread = Depends(get_thread_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    _ensure_thread_creator(thread, user)

    reply = await db.get(Reply, payload.reply_id)
    if not reply:
        raise HTTPException(status_code=404, detail="Reply not found")
    if reply.thread_id != thread.id:
        raise HTTPException(
            status_code=422,
            detail="Reply does not belong to this thread.",
        )

    thread.best_reply_id = reply.id
    await db.commit()

    logger.info("reply %s marked best on thread %s", reply.id, thread.id)
    return BestReplyResponse(data=BestReplyOut(thread_id=thread.id, best_reply_id=thread.best_reply_id))


@router.delete("/{category_slug}/{thread_slug}/best-replies", response_model=BestReplyResponse)
async def unmark_best_reply(
    payload: Optional[BestReplyIn] = Body(default=None),
    user: User = Depends(get_current_user),
    thread: Thread = Depends(get_thread_from_path),
    db: AsyncSession = Depends(get_async_session),
):
    # reply_id is accepted for client compatibility; a thread has one best reply
    _ensure_thread_creator(thread, user)

    thread.best_reply_id = None
    await db.commit()

    logger.info("best reply cleared on thread %s", thread.id)
    return BestReplyResponse(data=BestReplyOut(thread_id=thread.id, best_reply_id=None))
