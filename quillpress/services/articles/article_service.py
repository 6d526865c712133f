from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List

from fastapi import Depends, Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from quillpress.core.database import get_db
from quillpress.models.articles import Article
from quillpress.schemas.articles.articles import ArticleSearchFilters
from quillpress.services.articles.search import build_article_predicate
from quillpress.utils.exc_handler import NotFound, translate_storage_errors
from quillpress.utils.pagination import PageMeta, paginate, DEFAULT_LIMIT


@dataclass
class SearchPage:
    results: List[Article]
    meta: PageMeta


class ArticleService:
    def __init__(self, db: AsyncSession, default_limit: int = DEFAULT_LIMIT):
        self.db = db
        self.default_limit = default_limit

    @translate_storage_errors
    async def get_article(self, article_id: int) -> Article:
        query = (select(Article).where(Article.id == article_id))
        result = await self.db.execute(query)
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFound("Article not found.")
        return article

    @translate_storage_errors
    async def get_article_by_slug(self, slug: str) -> Article:
        query = (select(Article).where(Article.slug == slug))
        result = await self.db.execute(query)
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFound("Article not found.")
        return article

    @translate_storage_errors
    async def count_articles(self, filters: ArticleSearchFilters) -> int:
        stmt = select(func.count(Article.id)).where(build_article_predicate(filters))
        result = await self.db.execute(stmt)
        return int(result.scalar_one() or 0)

    @translate_storage_errors
    async def search_articles(self, filters: ArticleSearchFilters, limit: Any = None, offset: Any = None) -> SearchPage:
        total = await self.count_articles(filters)
        meta = paginate(total, limit, offset, default_limit=self.default_limit)
        if total == 0:
            return SearchPage(results=[], meta=meta)

        stmt = (
            select(Article)
            .options(selectinload(Article.author))
            .where(build_article_predicate(filters))
            .order_by(Article.created_at.desc(), Article.id.desc())
            .offset(meta.offset)
            .limit(meta.limit)
        )
        result = await self.db.execute(stmt)
        return SearchPage(results=list(result.scalars().all()), meta=meta)


def get_article_service(request: Request, db: AsyncSession = Depends(get_db)) -> 'ArticleService':
    return ArticleService(db, default_limit=request.app.state.settings.PAGE_LIMIT_DEFAULT)
