from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from quillpress.dependencies.auth import get_current_user
from quillpress.models.users import User
from quillpress.schemas.articles import articles as schema_article
from quillpress.services.articles.article_service import ArticleService, get_article_service
from quillpress.services.articles.rating_service import RatingService, get_rating_service
from quillpress.services.articles.reaction_service import ReactionAction, ReactionService, get_reaction_service

router = APIRouter()
"""prefix="/apis/articles"""

REACTION_MESSAGES = {
    (True, ReactionAction.CREATED): "You have liked this article",
    (True, ReactionAction.REMOVED): "You have unliked this article",
    (False, ReactionAction.CREATED): "Article disliked successfully",
    (False, ReactionAction.REMOVED): "You have removed the dislike on this article",
}


@router.get("/search",
            response_model=schema_article.ArticleSearchOut,
            summary="게시글 검색/필터",
            description="작성자, 검색어(제목/설명), 기간, 태그, 카테고리로 게시글을 찾습니다. 빠진 조건은 무시됩니다.")
async def search_articles(author: Optional[str] = Query(None, description="작성자 username 일부"),
                          term: Optional[str] = Query(None, description="제목 또는 설명에 포함된 문자열"),
                          start_date: Optional[datetime] = Query(None, alias="startDate"),
                          end_date: Optional[datetime] = Query(None, alias="endDate"),
                          tags: Optional[str] = Query(None, description="콤마로 구분된 태그. 모두 포함해야 한다."),
                          category_id: Optional[int] = Query(None, alias="categoryId"),
                          # 숫자가 아니면 기본값으로 (limit 10, offset 0)
                          limit: Optional[str] = Query(None),
                          offset: Optional[str] = Query(None),
                          article_service: ArticleService = Depends(get_article_service)):
    filters = schema_article.ArticleSearchFilters(author=author,
                                                  term=term,
                                                  start_date=start_date,
                                                  end_date=end_date,
                                                  tags=tags,
                                                  category_id=category_id)
    page = await article_service.search_articles(filters, limit=limit, offset=offset)
    return {
        "success": True,
        "results": [schema_article.ArticleOut.model_validate(article) for article in page.results],
        **page.meta.to_response(),
    }


async def _react(slug: str, likes: bool, response: Response,
                 reaction_service: ReactionService, current_user: User) -> schema_article.ReactionOut:
    result = await reaction_service.apply_reaction(current_user.id, slug, likes)
    if result.action == ReactionAction.CREATED:
        response.status_code = status.HTTP_201_CREATED
    return schema_article.ReactionOut(message=REACTION_MESSAGES[(likes, result.action)],
                                      action=result.action,
                                      likes=result.like_count,
                                      dislikes=result.dislike_count,
                                      article=schema_article.ArticleOut.model_validate(result.article))


@router.post("/{slug}/like",
             response_model=schema_article.ReactionOut,
             summary="게시글 좋아요 토글",
             description="처음이면 like 를 남기고(201), 이미 reaction 이 있으면 지웁니다(200).")
async def like_article(slug: str,
                       response: Response,
                       reaction_service: ReactionService = Depends(get_reaction_service),
                       current_user: User = Depends(get_current_user)):
    return await _react(slug, True, response, reaction_service, current_user)


@router.post("/{slug}/dislike",
             response_model=schema_article.ReactionOut,
             summary="게시글 싫어요 토글",
             description="처음이면 dislike 를 남기고(201), 이미 reaction 이 있으면 지웁니다(200).")
async def dislike_article(slug: str,
                          response: Response,
                          reaction_service: ReactionService = Depends(get_reaction_service),
                          current_user: User = Depends(get_current_user)):
    return await _react(slug, False, response, reaction_service, current_user)


@router.post("/{article_id}/rate",
             response_model=schema_article.RatingResultOut,
             summary="게시글 평점",
             description="처음 평가하면 생성(201), 다시 평가하면 기존 평점을 덮어씁니다(200).")
async def rate_article(article_id: int,
                       rating_in: schema_article.RatingIn,
                       response: Response,
                       rating_service: RatingService = Depends(get_rating_service),
                       current_user: User = Depends(get_current_user)):
    result = await rating_service.rate(current_user.id, article_id, rating_in.rating)
    if result.created:
        response.status_code = status.HTTP_201_CREATED
        message = f"Article has been rated as {result.rating.rating}"
    else:
        message = f"Article rating has been updated as {result.rating.rating}"
    return schema_article.RatingResultOut(message=message,
                                          created=result.created,
                                          rating=schema_article.RatingOut.model_validate(result.rating))


@router.get("/{slug}",
            summary="게시글 조회",
            description="slug 로 게시글 하나와 작성자 정보를 조회합니다.")
async def get_article(slug: str,
                      article_service: ArticleService = Depends(get_article_service)):
    article = await article_service.get_article_by_slug(slug)
    return {"success": True, "article": schema_article.ArticleOut.model_validate(article)}
