"""
Pagination Schemas
"""

from typing import Generic, List, Tuple, TypeVar

from pydantic import BaseModel, Field

T = TypeVar('T')


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of results plus the numbers a client needs to page through them."""
    items: List[T]
    total: int = Field(description="Matching items across all pages")
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool

    @classmethod
    def create(cls, items: List[T], total: int, page: int, page_size: int):
        total_pages = -(-total // page_size) if page_size else 0
        return cls(
            items=items,
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_previous=page > 1,
        )


def paginate_query(query, page: int, page_size: int) -> Tuple[list, int]:
    """(items on `page`, total count) for a SQLAlchemy query; pages start at 1."""
    total = query.count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return items, total
