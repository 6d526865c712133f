# tests/conftest.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterator
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from quillpress.core.database import Base, create_session_factory
from quillpress.core.inits import initialize_app
from quillpress.core.settings import Settings
from quillpress.models.articles import Article, Category, Comment
from quillpress.models.users import User

TEST_DB_URL = "sqlite+aiosqlite://"
TEST_SECRET_KEY = "test-secret-key-for-quillpress"


def make_settings(**overrides: Any) -> Settings:
    values = dict(
        SECRET_KEY=TEST_SECRET_KEY,
        ALGORITHM="HS256",
        DATABASE_URL=TEST_DB_URL,
        DB_CREATE_ALL=False,
        RATING_MIN=1,
        RATING_MAX=5,
    )
    values.update(overrides)
    return Settings(**values)


def make_token(user_id: Any, secret_key: str = TEST_SECRET_KEY) -> str:
    return jwt.encode({"user_id": user_id}, secret_key, algorithm="HS256")


def auth_headers(user_id: Any) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


async def seed(db: AsyncSession) -> dict[str, Any]:
    """users 2명, category 2개, article 3개, comment 1개."""
    alice = User(username="alice", email="alice@example.com", name="Alice", bio="writes about python")
    bob = User(username="bobby", email="bob@example.com", name="Bob", bio=None)
    news = Category(name="news")
    tech = Category(name="tech")
    db.add_all([alice, bob, news, tech])
    await db.flush()

    first = Article(slug="fastapi-intro", title="Intro to FastAPI", description="a web framework",
                    body="...", author_id=alice.id, category_id=tech.id,
                    created_at=datetime(2024, 1, 10, tzinfo=timezone.utc))
    first.taglist = ["python", "fastapi", "web"]
    second = Article(slug="daily-news", title="Daily digest", description="foo fighters concert",
                     body="...", author_id=bob.id, category_id=news.id,
                     created_at=datetime(2024, 2, 5, tzinfo=timezone.utc))
    second.taglist = ["music"]
    third = Article(slug="foo-bar", title="foo and bar", description="placeholder names",
                    body="...", author_id=alice.id, category_id=tech.id,
                    created_at=datetime(2024, 3, 1, tzinfo=timezone.utc))
    third.taglist = ["python"]
    db.add_all([first, second, third])
    await db.flush()

    comment = Comment(body="nice one", user_id=bob.id, article_slug=first.slug)
    db.add(comment)
    await db.commit()

    return {
        "alice": alice,
        "bob": bob,
        "news": news,
        "tech": tech,
        "articles": [first, second, third],
        "comment": comment,
    }


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest_asyncio.fixture()
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool)
    await create_schema(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    session_factory = create_session_factory(engine)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def data(db_session: AsyncSession) -> dict[str, Any]:
    return await seed(db_session)


@pytest.fixture()
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture()
def api_data(tmp_path) -> dict[str, Any]:
    """API 테스트용 파일 DB. TestClient 는 자기 event loop 에서 엔진을 만든다."""
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'api.db'}"

    async def _prepare() -> dict[str, Any]:
        engine = create_async_engine(db_url)
        try:
            await create_schema(engine)
            async with create_session_factory(engine)() as session:
                seeded = await seed(session)
                return {
                    "db_url": db_url,
                    "alice_id": seeded["alice"].id,
                    "bob_id": seeded["bob"].id,
                    "tech_id": seeded["tech"].id,
                    "article_ids": [article.id for article in seeded["articles"]],
                    "comment_id": seeded["comment"].id,
                }
        finally:
            await engine.dispose()

    return asyncio.run(_prepare())


@pytest.fixture()
def client(api_data: dict[str, Any]) -> Iterator[TestClient]:
    app = initialize_app(make_settings(DATABASE_URL=api_data["db_url"]))
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client
