from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import ColumnElement, and_, or_, true

from quillpress.models.articles import Article, ArticleTag
from quillpress.models.users import User
from quillpress.schemas.articles.articles import ArticleSearchFilters
from quillpress.utils.exc_handler import ValidationError


def split_tags(tags: Optional[str]) -> List[str]:
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


def _as_utc(value: datetime) -> datetime:
    # naive 는 UTC 로 본다
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _author_clause(filters: ArticleSearchFilters) -> Optional[ColumnElement[bool]]:
    if not filters.author:
        return None
    return Article.author.has(User.username.contains(filters.author, autoescape=True))


def _term_clause(filters: ArticleSearchFilters) -> Optional[ColumnElement[bool]]:
    if not filters.term:
        return None
    # term 만 title OR description. 나머지 조건끼리는 AND
    return or_(
        Article.title.contains(filters.term, autoescape=True),
        Article.description.contains(filters.term, autoescape=True),
    )


def _date_clause(filters: ArticleSearchFilters) -> Optional[ColumnElement[bool]]:
    if filters.start_date is None or filters.end_date is None:
        return None
    if _as_utc(filters.start_date) > _as_utc(filters.end_date):
        raise ValidationError("startDate must not be later than endDate.")
    return Article.created_at.between(filters.start_date, filters.end_date)


def _tags_clause(filters: ArticleSearchFilters) -> Optional[ColumnElement[bool]]:
    tags = split_tags(filters.tags)
    if not tags:
        return None
    # 하나라도 겹치면(any)이 아니라 전부 포함(contains)
    return and_(*(Article.tags.any(ArticleTag.name == tag) for tag in tags))


def _category_clause(filters: ArticleSearchFilters) -> Optional[ColumnElement[bool]]:
    if not filters.category_id:
        return None
    return Article.category_id == filters.category_id


CLAUSE_BUILDERS = (_author_clause, _term_clause, _date_clause, _tags_clause, _category_clause)


def build_article_predicate(filters: ArticleSearchFilters) -> ColumnElement[bool]:
    clauses = [clause for clause in (build(filters) for build in CLAUSE_BUILDERS) if clause is not None]
    if not clauses:
        return true()
    return and_(*clauses)
