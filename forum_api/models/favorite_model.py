import logging
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    delete,
    func,
    select,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.database import Base
from forum_api.models.user_model import utcnow

logger = logging.getLogger(__name__)


class Favorite(Base):
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "favoritable_type", "favoritable_id", name="uq_favorites_user_target"),
        Index("ix_favorites_target", "favoritable_type", "favoritable_id"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # no FK on the target: one table serves every favoritable model
    favoritable_type = Column(String(24), nullable=False)  # "thread" / "reply"
    favoritable_id = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)


class Favoritable:
    """
    Mixin for models users can favorite.

    Subclasses set ``favoritable_type``; rows live in the shared ``favorites``
    table keyed by (favoritable_type, favoritable_id, user_id).
    """

    favoritable_type: str = ""

    def _favorites_where(self):
        return (
            Favorite.favoritable_type == self.favoritable_type,
            Favorite.favoritable_id == self.id,
        )

    async def _find_favorite(self, db: AsyncSession, user_id: int) -> Optional[Favorite]:
        stmt = select(Favorite).where(*self._favorites_where(), Favorite.user_id == user_id).limit(1)
        return (await db.execute(stmt)).scalars().first()

    async def favorite(self, db: AsyncSession, user) -> Favorite:
        existing = await self._find_favorite(db, user.id)
        if existing:
            return existing
        fav = Favorite(
            user_id=user.id,
            favoritable_type=self.favoritable_type,
            favoritable_id=self.id,
        )
        try:
            async with db.begin_nested():
                db.add(fav)
                await db.flush()
        except IntegrityError:
            # a concurrent request inserted the same row first
            logger.debug("favorite %s %s by user %s already exists", self.favoritable_type, self.id, user.id)
            return await self._find_favorite(db, user.id)
        return fav


    async def unfavorite(self, db: AsyncSession, user) -> bool:
        existing = await self._find_favorite(db, user.id)
        if not existing:
            return False
        await db.delete(existing)
        await db.flush()
        return True

    async def is_favorited(self, db: AsyncSession, user) -> bool:
        if user is None:
            return False
        return (await self._find_favorite(db, user.id)) is not None

    async def favorites_count(self, db: AsyncSession) -> int:
        stmt = select(func.count(Favorite.id)).where(*self._favorites_where())
        return int((await db.execute(stmt)).scalar_one() or 0)

    async def clear_favorites(self, db: AsyncSession) -> None:
        await db.execute(delete(Favorite).where(*self._favorites_where()))

    @classmethod
    async def favorite_stats(
        cls, db: AsyncSession, ids: Iterable[int], viewer_id: Optional[int] = None
    ) -> Dict[int, Tuple[int, bool]]:
        """Batch lookup of ``{id: (favorites_count, viewer_has_favorited)}``."""
        ids = list(ids)
        stats: Dict[int, Tuple[int, bool]] = {i: (0, False) for i in ids}
        if not ids:
            return stats

        counts = await db.execute(
            select(Favorite.favoritable_id, func.count(Favorite.id))
            .where(Favorite.favoritable_type == cls.favoritable_type, Favorite.favoritable_id.in_(ids))
            .group_by(Favorite.favoritable_id)
        )
        for target_id, count in counts.all():
            stats[target_id] = (int(count), False)

        if viewer_id:
            mine = await db.execute(
                select(Favorite.favoritable_id).where(
                    Favorite.favoritable_type == cls.favoritable_type,
                    Favorite.favoritable_id.in_(ids),
                    Favorite.user_id == viewer_id,
                )
            )
            for (target_id,) in mine.all():
                count, _ = stats[target_id]
                stats[target_id] = (count, True)
        return stats
