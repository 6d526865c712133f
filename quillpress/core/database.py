import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import Integer, DateTime
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import declarative_base, Mapped, mapped_column

from quillpress.core.settings import Settings
from quillpress.utils.exc_handler import Conflict

logger = logging.getLogger(__name__)


def create_engine_from(settings: Settings) -> AsyncEngine:
    options = dict(echo=settings.DEBUG, future=True)
    if not settings.DATABASE_URL.startswith("sqlite"):
        # sqlite(aiosqlite)는 pool 옵션을 받지 않는다.
        options.update(pool_size=10, max_overflow=0, pool_recycle=300, pool_pre_ping=True)
    return create_async_engine(settings.DATABASE_URL, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
"""
 autocommit=False: commit 해야만 실제 저장된다.
 toggle 엔진은 조회 -> insert/delete -> commit 을 한 단위로 처리하고, 실패하면 rollback 한다.
"""

Base = declarative_base()  # Base 클래스 (모든 모델이 상속)


class BaseModel(Base):
    __abstract__ = True
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True),
                                                 nullable=False,
                                                 default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True),
                                                 nullable=False,
                                                 default=lambda: datetime.now(timezone.utc),
                                                 onupdate=lambda: datetime.now(timezone.utc))


async def init_models(engine: AsyncEngine) -> None:
    # 모델 모듈을 import 해야 metadata 에 테이블이 등록된다.
    import quillpress.models.users  # noqa: F401
    import quillpress.models.articles  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    session: AsyncSession = request.app.state.session_factory()
    logger.debug("[get_db] new session: %s", id(session))
    try:
        yield session
    except Exception as e:
        logger.debug("Session rollback triggered due to exception: %s", e)
        await session.rollback()
        raise
    finally:
        await session.close()


@asynccontextmanager
async def conflict_guard(session: AsyncSession, key: str) -> AsyncGenerator[None, None]:
    """블록 안의 쓰기를 commit 한다. unique 제약에 걸리면 rollback 하고 Conflict 를 던진다."""
    try:
        yield
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise Conflict(f"concurrent write on {key}") from e
