"""페이지네이션 유틸리티 모듈.

Pagination utility module.
Provides a generic Page model and a builder that computes the page count
for consistent paged listings across repositories.
"""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """페이지네이션 결과 모델.

    Pagination result model for typed responses.
    Contains the paginated items and metadata for client-side pagination controls.

    Attributes:
        items: 현재 페이지 항목 목록 (Items for the current page)
        total: 전체 항목 수 (Total count across all pages)
        page: 현재 페이지 번호 (Current page number, 1-based)
        per_page: 페이지당 항목 수 (Items per page)
        pages: 전체 페이지 수 (Total number of pages)
    """

    items: list[T]  # 현재 페이지 항목 목록 (Paginated items)
    total: int  # 전체 항목 수 (Total item count)
    page: int  # 현재 페이지 번호 — 1부터 시작 (Current page, 1-indexed)
    per_page: int  # 페이지당 항목 수 (Items per page)
    pages: int  # 전체 페이지 수 (Total pages, computed: ceil(total/per_page))


def build_page(items: list[T], total: int, page: int, per_page: int) -> Page[T]:
    """항목과 전체 개수로 Page를 구성합니다.

    Assemble a Page from one page of items and the total match count.

    Args:
        items: 현재 페이지 항목 (Items for the current page)
        total: 전체 항목 수 (Total matching items)
        page: 요청 페이지 번호, 1부터 시작 (Page number, 1-indexed)
        per_page: 페이지당 항목 수 (Items per page)

    Returns:
        Page[T]: 페이지 메타데이터를 포함한 결과 (Result with pagination metadata)
    """
    pages: int = math.ceil(total / per_page) if per_page > 0 else 0
    return Page(items=items, total=total, page=page, per_page=per_page, pages=pages)
