from typing import Optional, List

from sqlalchemy import ForeignKey, Integer, String, Text, Boolean, JSON, UniqueConstraint, func, select
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import relationship, Mapped, mapped_column, backref

from quillpress.core.database import BaseModel, Base
from quillpress.models.users import comment_likes


class Category(BaseModel):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"


class ArticleTag(Base):
    __tablename__ = "article_tags"

    article_id: Mapped[int] = mapped_column(Integer, ForeignKey("articles.id", ondelete='CASCADE'), primary_key=True)
    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    # 태그 목록의 순서 보존용
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<ArticleTag(article_id={self.article_id}, name='{self.name}')>"


class Article(BaseModel):
    __tablename__ = "articles"

    # slug는 한번 정해지면 바뀌지 않는다. reaction/comment 가 slug로 참조한다.
    slug: Mapped[str] = mapped_column(String(200), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    category_id: Mapped[Optional[int]] = mapped_column(Integer, ForeignKey("categories.id", name="fk_article_category_id"), nullable=True)
    category: Mapped[Optional["Category"]] = relationship("Category", lazy="selectin")

    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", name="article_author_id", ondelete='CASCADE'), nullable=False)
    # 비동기에서는 lazy='selectin' 기본 적용. 안그러면 MissingGreenlet.
    author: Mapped["User"] = relationship("User", backref=backref("articles",
                                                                  cascade="all, delete-orphan",
                                                                  passive_deletes=True), lazy="selectin")

    tags: Mapped[List["ArticleTag"]] = relationship("ArticleTag",
                                                    order_by=ArticleTag.position,
                                                    cascade="all, delete-orphan",
                                                    passive_deletes=True,
                                                    lazy="selectin")

    @property
    def taglist(self) -> List[str]:
        return [tag.name for tag in self.tags]

    @taglist.setter
    def taglist(self, names: List[str]):
        self.tags = [ArticleTag(name=name, position=position) for position, name in enumerate(dict.fromkeys(names))]

    def __repr__(self):
        return f"<Article(id={self.id}, slug='{self.slug}', author_id={self.author_id}, created_at={self.created_at})>"


class Reaction(BaseModel):
    """user 한 명이 article 하나에 남긴 like/dislike. 없음/like/dislike 셋 중 하나다.

    polarity 를 바꾸려면 update 하지 않고 delete 후 다시 create 한다.
    """
    __tablename__ = "reactions"
    __table_args__ = (UniqueConstraint("user_id", "article_slug", name="uq_reactions_user_article"),)

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete='CASCADE'), nullable=False)
    article_slug: Mapped[str] = mapped_column(String(200), ForeignKey("articles.slug", ondelete='CASCADE'), nullable=False, index=True)
    likes: Mapped[bool] = mapped_column(Boolean, nullable=False)

    def __repr__(self):
        return f"<Reaction(user_id={self.user_id}, article_slug='{self.article_slug}', likes={self.likes})>"


class Rating(BaseModel):
    __tablename__ = "ratings"
    __table_args__ = (UniqueConstraint("user_id", "article_id", name="uq_ratings_user_article"),)

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", ondelete='CASCADE'), nullable=False)
    article_id: Mapped[int] = mapped_column(Integer, ForeignKey("articles.id", ondelete='CASCADE'), nullable=False, index=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self):
        return f"<Rating(user_id={self.user_id}, article_id={self.article_id}, rating={self.rating})>"


class Comment(BaseModel):
    __tablename__ = 'comments'

    body: Mapped[str] = mapped_column(Text, nullable=False)

    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id", name="comment_author_id", ondelete='CASCADE'), nullable=False)
    author: Mapped["User"] = relationship("User", lazy="selectin")

    article_slug: Mapped[str] = mapped_column(String(200), ForeignKey("articles.slug", name="fk_comment_article_slug", ondelete='CASCADE'), nullable=False, index=True)
    article: Mapped["Article"] = relationship("Article", backref=backref("comments",
                                                                         cascade="all, delete-orphan",
                                                                         passive_deletes=True), lazy="selectin")

    likers = relationship('User', secondary=comment_likes, lazy="selectin", viewonly=True)

    @hybrid_property
    def like_count(self):
        return len(self.likers)

    @like_count.expression
    def like_count(cls):
        return (
            select(func.count(comment_likes.c.user_id))
            .where(comment_likes.c.comment_id == cls.id)
            .correlate(cls)
            .scalar_subquery()
        )

    def __repr__(self):
        return f"<Comment(id={self.id}, user_id={self.user_id}, article_slug='{self.article_slug}')>"
