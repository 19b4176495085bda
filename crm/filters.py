import math
from dataclasses import dataclass
from typing import Optional

from crm.config import DEFAULT_PAGE_SIZE


@dataclass
class FilterState:
    """Page, page size and search term of one record list. Lives as long as the view."""
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    search_term: str = ""
    total_count: Optional[int] = None

    def __post_init__(self):
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.page_size < 1:
            raise ValueError("page_size must be > 0")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size

    def total_pages(self, total_count: Optional[int] = None) -> int:
        if total_count is None:
            total_count = self.total_count or 0
        return math.ceil(total_count / self.page_size)

    def set_search_term(self, search_term: str) -> None:
        self.search_term = search_term or ""
        self.page = 1

    def set_page(self, page: int) -> None:
        if page < 1:
            raise ValueError("page must be >= 1")
        if self.total_count is not None:
            # An empty result still has a first page
            page = min(page, max(self.total_pages(), 1))
        self.page = page

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be > 0")
        self.page_size = page_size
        self.page = 1
