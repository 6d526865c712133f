import logging
from dataclasses import dataclass
from typing import List

from fastapi import Depends
from sqlalchemy import select, and_, delete, func, exists
from sqlalchemy.ext.asyncio import AsyncSession

from quillpress.core.database import get_db, conflict_guard
from quillpress.models.articles import Article, Comment
from quillpress.models.users import comment_likes
from quillpress.utils.exc_handler import Conflict, NotFound, translate_storage_errors

logger = logging.getLogger(__name__)


@dataclass
class CommentLikeResult:
    liked: bool
    like_count: int


@dataclass
class CommentWithLikes:
    comment: Comment
    like_count: int


class ArticleCommentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_comment(self, comment_id: int) -> Comment:
        query = (select(Comment).where(Comment.id == comment_id))
        result = await self.db.execute(query)
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFound("Comment not found.")
        return comment

    async def is_comment_liked_by_user(self, comment_id: int, user_id: int) -> bool:
        query = select(
            exists().where(
                and_(comment_likes.c.comment_id == comment_id,
                     comment_likes.c.user_id == user_id)
            )
        )
        result = await self.db.execute(query)
        return bool(result.scalar())

    async def count_comment_likes(self, comment_id: int) -> int:
        query = (select(func.count())
                 .select_from(comment_likes)
                 .where(comment_likes.c.comment_id == comment_id))
        result = await self.db.execute(query)
        return int(result.scalar_one() or 0)

    @translate_storage_errors
    async def toggle_comment_like(self, comment_id: int, user_id: int) -> CommentLikeResult:
        await self.get_comment(comment_id)

        if await self.is_comment_liked_by_user(comment_id, user_id):
            await self.db.execute(
                delete(comment_likes).where(
                    and_(comment_likes.c.comment_id == comment_id,
                         comment_likes.c.user_id == user_id)
                )
            )
            await self.db.commit()
            liked = False
        else:
            # 연결 테이블에 직접 insert (관계 접근 없음 -> MissingGreenlet 회피)
            try:
                async with conflict_guard(self.db, f"comment_like({user_id}, {comment_id})"):
                    await self.db.execute(
                        comment_likes.insert().values(comment_id=comment_id, user_id=user_id)
                    )
            except Conflict as e:
                # 같은 좋아요가 먼저 commit 됐다. 결과는 동일하게 '좋아요'
                logger.info("%s: folded into the committed like", e.message)
            liked = True

        like_count = await self.count_comment_likes(comment_id)
        logger.debug("comment like toggled comment=%s user=%s liked=%s count=%s",
                     comment_id, user_id, liked, like_count)
        return CommentLikeResult(liked=liked, like_count=like_count)

    @translate_storage_errors
    async def list_comments(self, article_slug: str) -> List[CommentWithLikes]:
        article_exists = await self.db.execute(select(Article.id).where(Article.slug == article_slug))
        if article_exists.scalar_one_or_none() is None:
            raise NotFound("Article not found.")

        query = (select(Comment, Comment.like_count)
                 .where(Comment.article_slug == article_slug)
                 .order_by(Comment.created_at.asc(), Comment.id.asc()))
        result = await self.db.execute(query)
        return [CommentWithLikes(comment=comment, like_count=int(count or 0))
                for comment, count in result.all()]


def get_articlecomment_service(db: AsyncSession = Depends(get_db)) -> 'ArticleCommentService':
    return ArticleCommentService(db)
