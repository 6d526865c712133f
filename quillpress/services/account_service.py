from typing import Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from quillpress.core.database import conflict_guard
from quillpress.models.users import User
from quillpress.utils.exc_handler import Conflict, translate_storage_errors


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        query = (select(User).where(User.id == user_id))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        query = (select(User).where(User.email == email))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_user_by_username_or_email(self, username: str, email: str) -> Optional[User]:
        query = (select(User).where(or_(User.username == username, User.email == email)))
        result = await self.db.execute(query)
        return result.scalars().first()

    @translate_storage_errors
    async def find_or_create_by_email(self, email: str, **defaults) -> tuple[User, bool]:
        """email 기준 idempotent upsert. 소셜 로그인(외부)이 userId 를 얻을 때 쓰는 계약.

        이미 있으면 (user, False), 새로 만들었으면 (user, True).
        """
        user = await self.get_user_by_email(email)
        if user is not None:
            return user, False

        user = User(email=email, **defaults)
        try:
            async with conflict_guard(self.db, f"user({email})"):
                self.db.add(user)
        except Conflict:
            # 같은 email 로 동시에 가입 -> 먼저 만들어진 사용자를 돌려준다.
            existing = await self.get_user_by_email(email)
            if existing is None:
                raise
            return existing, False
        return user, True
