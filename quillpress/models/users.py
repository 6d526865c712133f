from typing import Optional

from sqlalchemy import String, Text, Table, Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from quillpress.core.database import BaseModel, Base


class User(BaseModel):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # 소셜 로그인으로 들어온 사용자는 비밀번호가 없다.
    password: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), default="user", nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}', email='{self.email}')>"


# 존재하면 '좋아요', 없으면 '좋아요 아님'. (user, comment) 당 한 줄만 존재한다.
comment_likes = Table('comment_likes',
                      Base.metadata,
                      Column('user_id', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
                      Column('comment_id', Integer, ForeignKey('comments.id', ondelete='CASCADE'), primary_key=True),
                      UniqueConstraint("user_id", "comment_id", name="uq_comment_likes")
                      )
