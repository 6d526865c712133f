import math
from dataclasses import dataclass
from typing import Any

DEFAULT_LIMIT = 10
DEFAULT_OFFSET = 0


@dataclass(frozen=True)
class PageMeta:
    count: int
    limit: int
    offset: int
    total_pages: int
    current_page: int

    def to_response(self) -> dict:
        # 응답에서는 camelCase (results 와 같은 레벨로 merge 된다)
        return {
            "count": self.count,
            "limit": self.limit,
            "offset": self.offset,
            "totalPages": self.total_pages,
            "currentPage": self.current_page,
        }


def _to_int(value: Any) -> int:
    """숫자가 아니면 0. bool, nan, inf 도 0으로 본다."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(number)


def paginate(count: int, limit: Any = None, offset: Any = None, default_limit: int = DEFAULT_LIMIT) -> PageMeta:
    limit = _to_int(limit)
    if limit < 1:
        # 0 으로 나누지 않도록 기본값 사용
        limit = default_limit
    offset = max(_to_int(offset), DEFAULT_OFFSET)
    count = max(int(count), 0)

    return PageMeta(
        count=count,
        limit=limit,
        offset=offset,
        total_pages=math.ceil(count / limit),
        current_page=offset // limit + 1,
    )
