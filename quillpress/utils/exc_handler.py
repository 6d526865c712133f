import functools
import logging

from fastapi import status
from fastapi.requests import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


"""
NotFound        == 404: 대상 article/comment 없음
ValidationError == 400: 평점 값/날짜 범위 오류
StorageFault    == 500: DB 연결 실패 등 예상하지 못한 저장소 오류
Conflict        : 같은 key 로 동시에 create 할 때의 unique 제약 위반. 엔진 내부에서 처리하고 밖으로 나가지 않는다.
"""


class EngagementError(Exception):
    kind = "engagement_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"success": False, "kind": self.kind, "errors": [self.message]}


class NotFound(EngagementError):
    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class Conflict(EngagementError):
    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ValidationError(EngagementError):
    kind = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class StorageFault(EngagementError):
    kind = "storage_fault"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def translate_storage_errors(method):
    """서비스 메서드에서 새어 나온 SQLAlchemyError 를 rollback 후 StorageFault 로 바꾼다.

    EngagementError 는 그대로 통과시킨다. self.db 가 있는 서비스 클래스에만 붙인다.
    """
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            logger.exception("storage fault in %s", method.__qualname__)
            await self.db.rollback()
            raise StorageFault("Oops, something went wrong.") from e

    return wrapper


async def engagement_exception_handler(request: Request, exc: EngagementError):
    if isinstance(exc, StorageFault):
        logger.error("%s %s -> %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
