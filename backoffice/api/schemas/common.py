"""Shared response schemas for the back office API."""

from typing import Generic, TypeVar, List
from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a listing, with the totals needed to page further."""
    items: List[T]
    total: int
    page: int
    per_page: int
    pages: int
    has_next: bool

    @classmethod
    def create(cls, items: List[T], total: int, page: int, per_page: int):
        pages = -(-total // per_page) if per_page > 0 else 0
        return cls(
            items=items,
            total=total,
            page=page,
            per_page=per_page,
            pages=pages,
            has_next=page < pages,
        )
