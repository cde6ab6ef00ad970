from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    func,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from forum_api.database import Base
from forum_api.models.favorite_model import Favoritable
from forum_api.models.user_model import utcnow


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    threads = relationship(
        "Thread",
        back_populates="category",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Thread(Favoritable, Base):
    __tablename__ = "threads"
    __table_args__ = (
        UniqueConstraint("category_id", "slug", name="uq_threads_category_slug"),
    )

    favoritable_type = "thread"

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slug = Column(String(220), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=False)

    # threads <-> replies reference each other; the constraint is added after both tables exist
    best_reply_id = Column(
        Integer,
        ForeignKey("replies.id", ondelete="SET NULL", use_alter=True, name="fk_threads_best_reply_id"),
        nullable=True,
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    # relationships
    creator = relationship("User", back_populates="threads", lazy="joined")
    category = relationship("Category", back_populates="threads", lazy="joined")
    replies = relationship(
        "Reply",
        back_populates="thread",
        cascade="all, delete-orphan",
        passive_deletes=True,
        foreign_keys="Reply.thread_id",
        order_by="Reply.id",
    )


class Reply(Favoritable, Base):
    __tablename__ = "replies"

    favoritable_type = "reply"

    id = Column(Integer, primary_key=True, index=True)
    thread_id = Column(
        Integer,
        ForeignKey("threads.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False
    )

    # creator is always loaded with the reply
    creator = relationship("User", back_populates="replies", lazy="joined")
    thread = relationship("Thread", back_populates="replies", foreign_keys=[thread_id])
