from datetime import datetime

from pydantic import BaseModel, ConfigDict

from quillpress.schemas.articles.articles import AuthorOut


class CommentOut(BaseModel):
    id: int
    body: str
    user_id: int
    article_slug: str
    author: AuthorOut
    like_count: int = 0
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CommentListOut(BaseModel):
    success: bool = True
    comments: list[CommentOut]


class CommentLikeOut(BaseModel):
    success: bool = True
    message: str
    liked: bool
    likes: int
