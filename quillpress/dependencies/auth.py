import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from quillpress.core.database import get_db
from quillpress.models.users import User
from quillpress.services.account_service import UserService

logger = logging.getLogger(__name__)

# 헤더가 없으면 직접 401 을 던진다.
bearer_scheme = HTTPBearer(auto_error=False)

"""
토큰 발급(로그인/소셜 로그인)은 이 서비스 밖에서 한다.
여기서는 bearer JWT 의 user_id claim 으로 이미 확인된 사용자만 꺼낸다.
"""


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,
                         detail=detail,
                         headers={"WWW-Authenticate": "Bearer"})


def decode_user_id(token: str, secret_key: str, algorithm: str) -> Optional[int]:
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except JWTError as e:
        logger.debug("jwt decode failed: %s", e)
        return None
    user_id = payload.get("user_id")
    if isinstance(user_id, bool) or not isinstance(user_id, (int, str)):
        return None
    try:
        return int(user_id)
    except ValueError:
        return None


async def get_current_user(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
        db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated")

    settings = request.app.state.settings
    user_id = decode_user_id(credentials.credentials, settings.SECRET_KEY, settings.ALGORITHM)
    if user_id is None:
        raise _unauthorized("Token is invalid or expired")

    user = await UserService(db).get_user_by_id(user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user
