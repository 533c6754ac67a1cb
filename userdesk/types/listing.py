"""列表/分页通用结构类型."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class PaginatedResult(Generic[T]):
    """通用分页结果结构."""

    items: list[T]
    total: int
    page: int
    pages: int
    limit: int


@dataclass(slots=True, frozen=True)
class PageSlice(Generic[T]):
    """内存分页切片.

    ``page_index`` 从 0 开始; ``total_pages`` 至少为 1, 空集合也对应一页空表.
    """

    items: list[T]
    page_index: int
    page_size: int
    total: int
    total_pages: int

    @property
    def start_offset(self) -> int:
        return self.page_index * self.page_size

    @property
    def first_row_number(self) -> int:
        """当前页第一行的序号(从 1 开始),空页为 0."""
        if not self.items:
            return 0
        return self.start_offset + 1

    @property
    def last_row_number(self) -> int:
        if not self.items:
            return 0
        return self.start_offset + len(self.items)

    @property
    def has_previous(self) -> bool:
        return self.page_index > 0

    @property
    def has_next(self) -> bool:
        return self.page_index + 1 < self.total_pages

    def to_paginated_result(self) -> PaginatedResult[T]:
        """转换为 API 使用的 1-based 分页结构."""
        return PaginatedResult(
            items=list(self.items),
            total=self.total,
            page=self.page_index + 1,
            pages=self.total_pages,
            limit=self.page_size,
        )
