import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quillpress.apis.articles import articles as apis_articles
from quillpress.apis.articles import comments as apis_articles_comments
from quillpress.core.database import create_engine_from, create_session_factory, init_models
from quillpress.core.settings import Settings, get_settings, configure_logging
from quillpress.seeders import register_super_admin
from quillpress.utils import exc_handler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    # 테스트에서는 engine/session_factory 를 미리 넣어둘 수 있다. 그 경우 dispose 도 밖에서 한다.
    owns_engine = getattr(app.state, "engine", None) is None
    if owns_engine:
        app.state.engine = create_engine_from(settings)
        app.state.session_factory = create_session_factory(app.state.engine)
    logger.info("Initializing database......")

    if settings.DB_CREATE_ALL:
        await init_models(app.state.engine)

    async with app.state.session_factory() as db:
        await register_super_admin(db, settings)

    logger.info("Starting up...")
    yield
    logger.info("Shutting down...")
    if owns_engine:
        await app.state.engine.dispose()
        app.state.engine = None


def including_middleware(app: FastAPI, settings: Settings):
    app.add_middleware(CORSMiddleware,
                       allow_origins=settings.ORIGINS,
                       allow_methods=["*"],
                       allow_headers=["*"],
                       allow_credentials=True)


def including_exception_handler(app: FastAPI):
    app.add_exception_handler(exc_handler.EngagementError,
                              exc_handler.engagement_exception_handler)


def including_router(app: FastAPI):
    # comments 를 먼저 등록: /apis/articles/{slug} 보다 구체적인 경로
    app.include_router(apis_articles_comments.router, prefix="/apis/articles/comments", tags=["ArticlesCommentsAPI"])
    app.include_router(apis_articles.router, prefix="/apis/articles", tags=["ArticlesAPI"])


def initialize_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(title=settings.APP_NAME,
                  version=settings.APP_VERSION,
                  description=settings.APP_DESCRIPTION,
                  lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = None

    including_middleware(app, settings)
    including_exception_handler(app)
    including_router(app)

    return app
