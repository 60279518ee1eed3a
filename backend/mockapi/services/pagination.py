"""
Page-window policy layered over Query.find().
"""
import math
from typing import Any, Sequence

from mockapi.schemas.responses import PaginatedResponse, PaginationInfo

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


def paginate(
    records: Sequence[dict[str, Any]],
    page: int = DEFAULT_PAGE,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PaginatedResponse:
    """
    Slice the window [(page-1)*page_size, page*page_size) out of records.

    Out-of-range pages yield an empty window.

    Raises:
        ValueError: If page or page_size is below 1
    """
    if page < 1:
        raise ValueError("page must be at least 1")
    if page_size < 1:
        raise ValueError("page_size must be at least 1")

    total = len(records)
    start = (page - 1) * page_size
    window = list(records[start:start + page_size])

    return PaginatedResponse(
        data=window,
        pagination=PaginationInfo(
            total=total,
            current_page=page,
            per_page=page_size,
            total_pages=math.ceil(total / page_size),
        ),
    )
