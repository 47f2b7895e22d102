"""Data Transfer Objects for the service layer.

This module provides small typed containers shared across services:
pagination parameters and results for list operations.
"""

from dataclasses import dataclass
from typing import Generic, List, TypeVar

from spog.utils.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT

T = TypeVar("T")


@dataclass
class PageParams:
    """Limit/offset pagination parameters for list operations.

    Attributes:
        limit: Maximum number of items to return (default 50, max 1000)
        offset: Number of items to skip

    Raises:
        ValueError: If limit < 1, limit > 1000, or offset < 0
    """

    limit: int = DEFAULT_PAGE_LIMIT
    offset: int = 0

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError("limit must be >= 1")
        if self.limit > MAX_PAGE_LIMIT:
            raise ValueError(f"limit must be <= {MAX_PAGE_LIMIT}")
        if self.offset < 0:
            raise ValueError("offset must be >= 0")


@dataclass
class PageResult(Generic[T]):
    """Generic paginated result container.

    Attributes:
        items: Items in this page
        total: Total number of matching items across all pages
        limit: Page size that was requested
        offset: Offset that was requested

    Examples:
        >>> PageResult(items=[1, 2], total=5, limit=2, offset=0).has_more
        True
        >>> PageResult(items=[5], total=5, limit=2, offset=4).has_more
        False
    """

    items: List[T]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        """True if items exist beyond this page."""
        return self.total > self.offset + len(self.items)

    def pagination(self) -> dict:
        """Pagination block as returned by the HTTP API."""
        return {
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "has_more": self.has_more,
        }
