from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, func
from sqlalchemy.orm import relationship

from forum_api.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    password = Column(String, nullable=False)
    role = Column(String(20), default="GENERAL", nullable=False)  # GENERAL or ADMIN

    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    threads = relationship("Thread", back_populates="creator", passive_deletes=True)
    replies = relationship("Reply", back_populates="creator", passive_deletes=True)
