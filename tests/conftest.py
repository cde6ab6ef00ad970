import os

# configure before forum_api reads its settings
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from slugify import slugify
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from forum_api.database import Base, enable_sqlite_foreign_keys, get_async_session
from forum_api.limiter import limiter
from forum_api.main import app
from forum_api.models.forum_model import Category, Reply, Thread
from forum_api.models.user_model import User
from forum_api.utils.passwords import hash_password


class Factory:
    """Persist model rows with sensible defaults; keyword overrides win."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        return obj

    async def user(self, **overrides) -> User:
        n = self._next()
        data = {
            "name": f"user{n}",
            "email": f"user{n}@example.com",
            "password": hash_password("password"),
            "role": "GENERAL",
        }
        data.update(overrides)
        return await self._save(User(**data))

    async def category(self, **overrides) -> Category:
        n = self._next()
        data = {"name": f"Category {n}"}
        data.update(overrides)
        data.setdefault("slug", slugify(data["name"]))
        return await self._save(Category(**data))

    async def thread(
        self, user: Optional[User] = None, category: Optional[Category] = None, **overrides
    ) -> Thread:
        n = self._next()
        data = {
            "creator": user or await self.user(),
            "category": category or await self.category(),
            "title": f"Thread number {n}",
            "body": "Lorem ipsum dolor sit amet.",
        }
        data.update(overrides)
        data.setdefault("slug", slugify(data["title"]))
        return await self._save(Thread(**data))

    async def reply(self, thread: Optional[Thread] = None, user: Optional[User] = None, **overrides) -> Reply:
        data = {
            "thread_id": (thread or await self.thread()).id,
            "creator": user or await self.user(),
            "content": "Lorem ipsum",
        }
        data.update(overrides)
        return await self._save(Reply(**data))

    async def replies(self, count: int, **overrides) -> list:
        return [await self.reply(**overrides) for _ in range(count)]


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'forum_test.db'}", poolclass=NullPool)
    enable_sqlite_foreign_keys(eng)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_maker(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
def factory(db) -> Factory:
    return Factory(db)


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_async_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_async_session
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
