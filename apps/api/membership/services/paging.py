"""Paging parameter checks shared by the list endpoints."""

from membership.core import MAX_PAGE_SIZE
from membership.services.errors import InvalidArgumentError


def check_page_request(page: int, size: int, max_size: int = MAX_PAGE_SIZE) -> None:
    """Validate list paging parameters: page >= 0 and 1 <= size <= max_size."""
    if page is None or page < 0:
        raise InvalidArgumentError(f"Page number must be >= 0, received: {page}")
    if size is None or size < 1 or size > max_size:
        raise InvalidArgumentError(f"Page size must be between 1 and {max_size}, received: {size}")
