"""
Pagination helpers.

Every list endpoint takes ``page``/``limit`` query parameters and answers
with a ``{page, limit, total, pages}`` block next to the data.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from messmate.config import settings

DEFAULT_PAGE: int = 1


@dataclass(frozen=True)
class PaginationParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def normalize_pagination(
    page: Optional[int],
    limit: Optional[int],
    default_limit: Optional[int] = None,
) -> PaginationParams:
    """
    Clean up raw page/limit inputs.

    Rules:
        - page < 1 or None -> 1
        - limit < 1 or None -> default_limit (settings.DEFAULT_PAGE_SIZE)
        - limit > settings.MAX_PAGE_SIZE -> settings.MAX_PAGE_SIZE
    """
    if page is None or page < 1:
        page = DEFAULT_PAGE

    if limit is None or limit < 1:
        limit = default_limit or settings.DEFAULT_PAGE_SIZE

    limit = min(limit, settings.MAX_PAGE_SIZE)
    return PaginationParams(page=page, limit=limit)


def pagination_meta(params: PaginationParams, total: int) -> Dict[str, Any]:
    return {
        "page": params.page,
        "limit": params.limit,
        "total": total,
        "pages": math.ceil(total / params.limit) if total else 0,
    }
