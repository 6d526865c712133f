import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends, Request
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from quillpress.core.database import get_db, conflict_guard
from quillpress.models.articles import Article, Rating
from quillpress.utils.exc_handler import Conflict, NotFound, StorageFault, ValidationError, translate_storage_errors

logger = logging.getLogger(__name__)


@dataclass
class RatingResult:
    created: bool
    rating: Rating


def coerce_rating(value: Any, minimum: int, maximum: int) -> int:
    """정수, 정수값 float, 숫자 문자열만 받는다. bool/nan/inf/소수는 거부."""
    if isinstance(value, bool):
        raise ValidationError("Rating must be a number.")
    if isinstance(value, int):
        number = value
    else:
        try:
            as_float = float(value)
        except (TypeError, ValueError):
            raise ValidationError("Rating must be a number.")
        if not math.isfinite(as_float) or not as_float.is_integer():
            raise ValidationError("Rating must be a whole number.")
        number = int(as_float)

    if not minimum <= number <= maximum:
        raise ValidationError(f"Rating must be between {minimum} and {maximum}.")
    return number


class RatingService:
    def __init__(self, db: AsyncSession, rating_min: int = 1, rating_max: int = 5):
        self.db = db
        self.rating_min = rating_min
        self.rating_max = rating_max

    async def get_rating(self, user_id: int, article_id: int) -> Optional[Rating]:
        query = select(Rating).where(
            and_(Rating.user_id == user_id,
                 Rating.article_id == article_id)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    @translate_storage_errors
    async def rate(self, user_id: int, article_id: int, rating: Any) -> RatingResult:
        value = coerce_rating(rating, self.rating_min, self.rating_max)

        article = await self.db.get(Article, article_id)
        if article is None:
            raise NotFound("Article not found.")

        existing = await self.get_rating(user_id, article_id)
        if existing is None:
            created = Rating(user_id=user_id, article_id=article_id, rating=value)
            try:
                async with conflict_guard(self.db, f"rating({user_id}, {article_id})"):
                    self.db.add(created)
                logger.debug("rating created user=%s article=%s rating=%s", user_id, article_id, value)
                return RatingResult(created=True, rating=created)
            except Conflict as e:
                # 다른 요청이 먼저 insert 했다 -> update 경로로 다시
                logger.info("%s: retrying as update", e.message)
                existing = await self.get_rating(user_id, article_id)
                if existing is None:
                    raise StorageFault("Error rating this article")

        existing.rating = value
        await self.db.commit()
        logger.debug("rating updated user=%s article=%s rating=%s", user_id, article_id, value)
        return RatingResult(created=False, rating=existing)


def get_rating_service(request: Request, db: AsyncSession = Depends(get_db)) -> 'RatingService':
    settings = request.app.state.settings
    return RatingService(db, rating_min=settings.RATING_MIN, rating_max=settings.RATING_MAX)
