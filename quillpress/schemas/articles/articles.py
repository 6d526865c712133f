from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuthorOut(BaseModel):
    username: str
    email: str
    name: str | None = None
    bio: str | None = None
    model_config = ConfigDict(from_attributes=True)


class ArticleOut(BaseModel):
    id: int
    slug: str
    title: str
    description: str | None
    body: str | None
    images: List[str] = Field(default_factory=list)
    taglist: List[str] = Field(default_factory=list)
    category_id: int | None
    author_id: int
    author: AuthorOut
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ArticleSearchFilters(BaseModel):
    """검색 조건. 빠지거나 불완전한 조건은 predicate 에서 통째로 제외된다."""
    author: Optional[str] = None
    term: Optional[str] = None
    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")
    # 콤마로 구분된 문자열: "python,fastapi"
    tags: Optional[str] = None
    category_id: Optional[int] = Field(None, alias="categoryId")
    model_config = ConfigDict(populate_by_name=True)


class ArticleSearchOut(BaseModel):
    success: bool = True
    results: List[ArticleOut]
    count: int
    limit: int
    offset: int
    totalPages: int
    currentPage: int


class ReactionOut(BaseModel):
    success: bool = True
    message: str
    action: str
    likes: int
    dislikes: int
    article: ArticleOut


class RatingIn(BaseModel):
    # 숫자 변환/범위 검사는 RatingService 에서 한다.
    rating: Any


class RatingOut(BaseModel):
    id: int
    user_id: int
    article_id: int
    rating: int
    model_config = ConfigDict(from_attributes=True)


class RatingResultOut(BaseModel):
    success: bool = True
    message: str
    created: bool
    rating: RatingOut
