"""
Incrementally loaded list with an explicit cursor.

One ``PagedList`` per list on screen. Fetches are single-flight: a request
that arrives while another fetch for the same list is outstanding is dropped.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from app.errors import TransientNetworkError

logger = logging.getLogger(__name__)


class ListState(str, Enum):
    IDLE = "idle"
    LOADING_FIRST_PAGE = "loading_first_page"
    LOADING_MORE = "loading_more"
    LOADED = "loaded"
    ERROR = "error"


# (filters, limit, cursor) -> Page
FetchPage = Callable[[Dict[str, Any], int, Optional[str]], Any]


def dedupe(items, held_ids=()) -> list:
    """Drop items whose id is already held or repeated earlier in ``items``."""
    seen = set(held_ids)
    fresh = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        fresh.append(item)
    return fresh


class PagedList:
    def __init__(
        self,
        fetch_page: FetchPage,
        page_size: int,
        name: str = "list",
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self._fetch_page = fetch_page
        self.page_size = page_size
        self.name = name
        self._on_error = on_error

        self.items: List[Any] = []
        self.filters: Dict[str, Any] = {}
        self.cursor: Optional[str] = None
        self.has_more = False
        self.state = ListState.IDLE
        self.error: Optional[str] = None
        self._first_page_pending = False

    @property
    def in_flight(self) -> bool:
        return self.state in (ListState.LOADING_FIRST_PAGE, ListState.LOADING_MORE)

    def reload(self, filters: Optional[Dict[str, Any]] = None) -> bool:
        """Fetch the first page, replacing held items once it has arrived."""
        if filters is not None:
            self.filters = {k: v for k, v in filters.items() if v not in (None, "")}
            self._first_page_pending = True
        if self.in_flight:
            logger.debug("%s: reload dropped, fetch in flight", self.name)
            return False

        # held items stay visible, but the old cursor must never meet new filters
        self._first_page_pending = True
        self.cursor = None
        self.has_more = False
        self.state = ListState.LOADING_FIRST_PAGE
        requested = self.filters
        page = self._fetch(None)
        if page is None:
            return False
        self.items = dedupe(page.items)
        # filters swapped while this page was in flight
        self._first_page_pending = self.filters is not requested
        self._settle(page)
        return True

    def load_more(self) -> bool:
        """Append the next page, skipping ids already held."""
        if self.state is ListState.IDLE or self._first_page_pending:
            return self.reload()
        if self.in_flight:
            logger.debug("%s: load_more dropped, fetch in flight", self.name)
            return False
        if not self.has_more:
            return False

        self.state = ListState.LOADING_MORE
        page = self._fetch(self.cursor)
        if page is None:
            return False
        fresh = dedupe(page.items, (item.id for item in self.items))
        if len(fresh) < len(page.items):
            logger.info("%s: skipped %d overlapping items", self.name, len(page.items) - len(fresh))
        self.items.extend(fresh)
        self._settle(page)
        return True

    def _fetch(self, cursor: Optional[str]):
        try:
            return self._fetch_page(self.filters, self.page_size, cursor)
        except TransientNetworkError as exc:
            self.state = ListState.ERROR
            self.error = str(exc)
            if self._on_error:
                self._on_error(f"Could not load {self.name}: {exc}")
            return None

    def _settle(self, page) -> None:
        self.cursor = page.cursor
        self.has_more = len(page.items) >= self.page_size
        self.error = None
        self.state = ListState.LOADED

    # ── local edits ──────────────────────────────────────────────────────
    def find(self, item_id: str):
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def replace(self, item_id: str, new_item) -> bool:
        for index, item in enumerate(self.items):
            if item.id == item_id:
                self.items[index] = new_item
                return True
        return False

    def remove(self, item_id: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item.id != item_id]
        return len(self.items) < before
