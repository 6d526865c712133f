import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Optional

from fastapi import Depends
from sqlalchemy import and_, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quillpress.core.database import get_db, conflict_guard
from quillpress.models.articles import Article, Reaction
from quillpress.utils.exc_handler import Conflict, NotFound, translate_storage_errors

logger = logging.getLogger(__name__)


class ReactionAction(StrEnum):
    CREATED = "created"
    REMOVED = "removed"


@dataclass
class ReactionResult:
    action: ReactionAction
    like_count: int
    dislike_count: int
    article: Article


def _next_reaction_state(existing: Optional[Reaction], desired_likes: bool) -> Optional[bool]:
    """(user, article) 에 남길 reaction 의 likes 값. None 이면 row 를 남기지 않는다.

    row 가 이미 있으면 저장된 polarity 와 상관없이 지운다. dislike 상태에서 like 를 누르면
    like 로 바뀌는 게 아니라 dislike 가 지워지고, 한 번 더 눌러야 like 가 된다.
    polarity 전환으로 바꾸려면 아래 줄을
    `return None if existing.likes == desired_likes else desired_likes` 로 바꾸면 된다.
    """
    if existing is None:
        return desired_likes
    return None


class ReactionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_article(self, article_slug: str) -> Article:
        query = select(Article).where(Article.slug == article_slug)
        result = await self.db.execute(query)
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFound("Article not found.")
        return article

    async def get_reaction(self, user_id: int, article_slug: str) -> Optional[Reaction]:
        query = select(Reaction).where(
            and_(Reaction.user_id == user_id,
                 Reaction.article_slug == article_slug)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def count_reactions(self, article_slug: str, likes: bool) -> int:
        query = (select(func.count(Reaction.id))
                 .where(and_(Reaction.article_slug == article_slug,
                             Reaction.likes.is_(likes))))
        result = await self.db.execute(query)
        return int(result.scalar_one() or 0)

    @translate_storage_errors
    async def apply_reaction(self, user_id: int, article_slug: str, likes: bool) -> ReactionResult:
        article = await self._get_article(article_slug)

        existing = await self.get_reaction(user_id, article_slug)
        next_state = _next_reaction_state(existing, likes)

        action = ReactionAction.REMOVED if next_state is None else ReactionAction.CREATED
        try:
            # 조회 -> delete/insert -> commit 을 한 트랜잭션으로
            async with conflict_guard(self.db, f"reaction({user_id}, {article_slug})"):
                if existing is not None:
                    await self.db.execute(
                        delete(Reaction).where(
                            and_(Reaction.user_id == user_id,
                                 Reaction.article_slug == article_slug)
                        )
                    )
                if next_state is not None:
                    self.db.add(Reaction(user_id=user_id, article_slug=article_slug, likes=next_state))
        except Conflict as e:
            # 다른 writer 가 같은 (user, article) row 를 먼저 commit 했다.
            # 동시에 들어온 같은 요청은 먼저 commit 된 쪽 하나로 합친다. (row 는 하나만 남는다)
            logger.info("%s: folded into the committed reaction", e.message)
            article = await self._get_article(article_slug)

        like_count = await self.count_reactions(article_slug, True)
        dislike_count = await self.count_reactions(article_slug, False)
        logger.debug("reaction %s user=%s article=%s likes=%s dislikes=%s",
                     action, user_id, article_slug, like_count, dislike_count)

        return ReactionResult(action=action,
                              like_count=like_count,
                              dislike_count=dislike_count,
                              article=article)


def get_reaction_service(db: AsyncSession = Depends(get_db)) -> 'ReactionService':
    return ReactionService(db)
