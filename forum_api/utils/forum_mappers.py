# forum_api/utils/forum_mappers.py
from typing import Dict, List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.models.forum_model import Category, Reply, Thread
from forum_api.models.user_model import User
from forum_api.schemas.forum_schemas import CategoryOut, CategoryRef, ReplyOut, ThreadOut
from forum_api.schemas.user_schemas import UserOut
from forum_api.utils.time_utils import diff_for_humans


def user_to_out(u: Optional[User]) -> Optional[UserOut]:
    if u is None:
        return None
    return UserOut(id=u.id, name=u.name)


def category_to_ref(c: Optional[Category]) -> Optional[CategoryRef]:
    if c is None:
        return None
    return CategoryRef(id=c.id, name=c.name, slug=c.slug)


async def categories_to_out(db: AsyncSession, categories: Sequence[Category]) -> List[CategoryOut]:
    ids = [c.id for c in categories]
    counts: Dict[int, int] = {}
    if ids:
        rows = await db.execute(
            select(Thread.category_id, func.count(Thread.id))
            .where(Thread.category_id.in_(ids))
            .group_by(Thread.category_id)
        )
        counts = {cid: int(n) for cid, n in rows.all()}
    return [
        CategoryOut(
            id=c.id,
            name=c.name,
            slug=c.slug,
            threads_count=counts.get(c.id, 0),
            created_at=str(c.created_at),
        )
        for c in categories
    ]


async def replies_to_out(
    db: AsyncSession,
    replies: Sequence[Reply],
    viewer: Optional[User] = None,
    best_reply_ids: Optional[Dict[int, Optional[int]]] = None,
) -> List[ReplyOut]:
    """
    Map replies to output rows; ``ago`` and favorite bits are computed here on every read.

    ``best_reply_ids`` maps thread id to its best reply id; looked up when not given.
    """
    if not replies:
        return []

    if best_reply_ids is None:
        thread_ids = {r.thread_id for r in replies}
        rows = await db.execute(select(Thread.id, Thread.best_reply_id).where(Thread.id.in_(thread_ids)))
        best_reply_ids = {tid: best for tid, best in rows.all()}

    stats = await Reply.favorite_stats(db, [r.id for r in replies], getattr(viewer, "id", None))

    out = []
    for r in replies:
        fav_count, viewer_has = stats.get(r.id, (0, False))
        out.append(
            ReplyOut(
                id=r.id,
                thread_id=r.thread_id,
                user_id=r.user_id,
                content=r.content,
                creator=user_to_out(r.creator),
                ago=diff_for_humans(r.created_at),
                created_at=str(r.created_at),
                updated_at=str(r.updated_at),
                is_best=best_reply_ids.get(r.thread_id) == r.id,
                favorites_count=fav_count,
                is_favorited=viewer_has,
            )
        )
    return out


async def reply_to_out(db: AsyncSession, reply: Reply, viewer: Optional[User] = None) -> ReplyOut:
    return (await replies_to_out(db, [reply], viewer))[0]


async def threads_to_out(
    db: AsyncSession, threads: Sequence[Thread], viewer: Optional[User] = None
) -> List[ThreadOut]:
    if not threads:
        return []

    ids = [t.id for t in threads]
    rows = await db.execute(
        select(Reply.thread_id, func.count(Reply.id)).where(Reply.thread_id.in_(ids)).group_by(Reply.thread_id)
    )
    reply_counts = {tid: int(n) for tid, n in rows.all()}
    stats = await Thread.favorite_stats(db, ids, getattr(viewer, "id", None))

    out = []
    for t in threads:
        fav_count, viewer_has = stats.get(t.id, (0, False))
        out.append(
            ThreadOut(
                id=t.id,
                slug=t.slug,
                title=t.title,
                body=t.body,
                category=category_to_ref(t.category),
                creator=user_to_out(t.creator),
                best_reply_id=t.best_reply_id,
                replies_count=reply_counts.get(t.id, 0),
                favorites_count=fav_count,
                is_favorited=viewer_has,
                ago=diff_for_humans(t.created_at),
                created_at=str(t.created_at),
                updated_at=str(t.updated_at),
            )
        )
    return out


async def thread_to_out(db: AsyncSession, thread: Thread, viewer: Optional[User] = None) -> ThreadOut:
    return (await threads_to_out(db, [thread], viewer))[0]
