"""
List synchronization for the record tables.

A ListSynchronizer keeps one displayed page consistent with its FilterState
and with the store: it fetches on mount, on every filter change and after
every successful mutation. The cached page is always replaced wholesale by
a re-fetch, never patched in place.

Fetches are not cancelled. Each one carries a monotonic request token and
only the response to the most recently issued request is applied, so a
slow response to an older filter can never overwrite a newer page.
"""
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from loguru import logger

from crm.errors import CRMError, error_message
from crm.filters import FilterState
from crm.repository import RecordRepository

T = TypeVar("T")

FETCH_FAILED_MESSAGE = "Failed to fetch records"


class ListSynchronizer:
    def __init__(self, repository: RecordRepository, filters: Optional[FilterState] = None):
        self.repository = repository
        self.filters = filters or FilterState()
        self.rows: List[dict] = []
        self.total_count = 0
        self.loading = False
        self.error: Optional[str] = None
        self._latest_request = 0
        self._closed = False

    @property
    def total_pages(self) -> int:
        return self.filters.total_pages(self.total_count)

    @property
    def closed(self) -> bool:
        return self._closed

    async def mount(self) -> bool:
        self._closed = False
        return await self.refresh()

    def close(self) -> None:
        """The view went away; responses still in flight are dropped."""
        self._closed = True

    async def set_search_term(self, search_term: str) -> bool:
        self.filters.set_search_term(search_term)
        return await self.refresh()

    async def set_page(self, page: int) -> bool:
        self.filters.set_page(page)
        return await self.refresh()

    async def set_page_size(self, page_size: int) -> bool:
        self.filters.set_page_size(page_size)
        return await self.refresh()

    async def refresh(self) -> bool:
        """
        Fetch the current page.

        Returns True when this response was applied, False when it failed or
        was superseded by a newer request (or the view was closed).
        """
        self._latest_request += 1
        token = self._latest_request
        page, page_size, search_term = self.filters.page, self.filters.page_size, self.filters.search_term

        self.loading = True
        self.error = None
        try:
            result = await self.repository.list(page, page_size, search_term)
        except CRMError as e:
            if not self._is_current(token):
                return False
            # Rows stay as they were; the view shows the error alongside them
            self.error = error_message(e, FETCH_FAILED_MESSAGE)
            self.loading = False
            logger.warning(f"Record fetch failed: {self.error}")
            return False

        if not self._is_current(token):
            logger.debug(f"Discarding stale response for request {token} (latest {self._latest_request})")
            return False

        self.rows = result.rows
        self.total_count = result.total_count
        self.filters.total_count = result.total_count
        self.error = None
        self.loading = False
        return True

    async def after_mutation(self, mutation: Awaitable[T]) -> T:
        """Await a mutation and re-fetch on success. Mutation errors propagate; the list is left as is."""
        result = await mutation
        await self.refresh()
        return result

    def _is_current(self, token: int) -> bool:
        return not self._closed and token == self._latest_request


class DialogState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILURE = "failure"


class MutationDialog:
    """
    Lifecycle of one create/edit/delete dialog.

    Idle -> Submitting -> Success (dialog closes, list re-fetched)
                       -> Failure (error shown, dialog stays open, entered data kept)
    """

    def __init__(
        self,
        action: Callable[..., Awaitable[Any]],
        synchronizer: ListSynchronizer,
        failure_message: str = "Operation failed",
    ):
        self.action = action
        self.synchronizer = synchronizer
        self.failure_message = failure_message
        self.state = DialogState.IDLE
        self.is_open = False
        self.form_data: Optional[dict] = None
        self.error: Optional[str] = None
        self.result: Any = None

    def open(self, form_data: Optional[dict] = None) -> None:
        self.is_open = True
        self.state = DialogState.IDLE
        self.form_data = dict(form_data) if form_data else {}
        self.error = None

    async def submit(self, *args) -> bool:
        if self.state == DialogState.SUBMITTING:
            return False

        if self.form_data is not None and not args:
            args = (self.form_data,)

        self.state = DialogState.SUBMITTING
        self.error = None
        try:
            self.result = await self.action(*args)
        except CRMError as e:
            self.state = DialogState.FAILURE
            self.error = error_message(e, self.failure_message)
            logger.info(f"Dialog submission failed: {self.error}")
            return False

        self.state = DialogState.SUCCESS
        self.is_open = False
        await self.synchronizer.refresh()
        return True
