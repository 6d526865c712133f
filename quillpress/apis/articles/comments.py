from fastapi import APIRouter, Depends

from quillpress.dependencies.auth import get_current_user
from quillpress.models.users import User
from quillpress.schemas.articles import comments as schema_comment
from quillpress.services.articles.comment_service import ArticleCommentService, get_articlecomment_service

router = APIRouter()
' prefix="/apis/articles/comments"'


@router.get("/article/{slug}", response_model=schema_comment.CommentListOut)
async def list_comments(slug: str,
                        articlecomment_service: ArticleCommentService = Depends(get_articlecomment_service)):
    rows = await articlecomment_service.list_comments(slug)
    comments = []
    for row in rows:
        comment = schema_comment.CommentOut.model_validate(row.comment, from_attributes=True)
        comment.like_count = row.like_count
        comments.append(comment)
    return schema_comment.CommentListOut(comments=comments)


@router.post("/{comment_id}/like", response_model=schema_comment.CommentLikeOut)
async def comment_like(comment_id: int,
                       articlecomment_service: ArticleCommentService = Depends(get_articlecomment_service),
                       current_user: User = Depends(get_current_user)):
    result = await articlecomment_service.toggle_comment_like(comment_id, current_user.id)
    message = "Comment liked successfully" if result.liked else "Comment unliked successfully"
    return schema_comment.CommentLikeOut(message=message, liked=result.liked, likes=result.like_count)
