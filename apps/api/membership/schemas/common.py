import math
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageResponse(BaseModel, Generic[T]):
    """One page of a list plus the paging metadata the admin tables need."""

    content: list[T]
    page: int
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool

    @classmethod
    def of(cls, content: list, page: int, size: int, total_elements: int) -> "PageResponse":
        pages = math.ceil(total_elements / size) if size > 0 else 0
        return cls(
            content=content,
            page=page,
            size=size,
            total_elements=total_elements,
            total_pages=pages,
            first=page == 0,
            last=pages <= 1 or page >= pages - 1,
        )
