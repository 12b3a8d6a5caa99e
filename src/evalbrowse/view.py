"""The evaluations list view: pagination state plus the fetches that back it."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from .client import EvaluationsClient, FetchError, Page
from .config import Config
from .filters import Filter
from .pagination import NoNextPageError, PaginationCursor
from .query import to_query_string
from .settings import UserSettings, load_settings, save_settings

logger = logging.getLogger(__name__)


class EvaluationsView:
    """Owns one PaginationCursor and keeps it consistent with fetched pages.

    Every operation mutates the cursor, fetches the page it now points at,
    and restores the previous cursor state if the fetch fails.
    """

    def __init__(
        self,
        client: EvaluationsClient,
        cfg: Config,
        cursor: Optional[PaginationCursor] = None,
        settings_path: Optional[Path] = None,
    ) -> None:
        self.client = client
        self.settings_path = settings_path or cfg.settings_path
        self.settings = load_settings(self.settings_path, cfg.page_size)
        self.cursor = cursor or PaginationCursor(page_size=self.settings.page_size)
        self.page: Optional[Page] = None

    @property
    def has_next(self) -> bool:
        return self.page is not None and self.cursor.can_advance(self.page.cursor)

    @property
    def has_previous(self) -> bool:
        return self.cursor.can_retreat

    @property
    def depth(self) -> int:
        """Number of pages behind the current one."""
        return len(self.cursor.cursor_stack)

    def load(self) -> Page:
        return self._apply(lambda: None)

    def next_page(self) -> Page:
        if not self.has_next:
            raise NoNextPageError("no next page")
        candidate = self.page.cursor
        return self._apply(lambda: self.cursor.advance(candidate))

    def previous_page(self) -> Page:
        return self._apply(self.cursor.retreat)

    def set_filter(self, name: Union[Filter, str], value: Optional[str]) -> Page:
        return self._apply(lambda: self.cursor.set_filter(name, value))

    def set_page_size(self, new_size: int) -> Page:
        page = self._apply(lambda: self.cursor.set_page_size(new_size))
        self.settings = UserSettings(page_size=new_size)
        save_settings(self.settings_path, self.settings)
        return page

    def refresh(self) -> Page:
        return self._apply(lambda: self.cursor.refresh(self.settings.page_size))

    def query_string(self) -> str:
        return to_query_string(self.cursor)

    def _apply(self, mutate: Callable[[], None]) -> Page:
        before = self.cursor.snapshot()
        try:
            # A raising listener fires after the cursor has already moved.
            mutate()
            page = self.client.fetch_page(
                self.cursor.current_cursor, self.cursor.page_size, self.cursor.filters
            )
        except Exception as e:
            if self.cursor.snapshot() != before:
                logger.warning(f"Restoring previous pagination state after error: {e}")
                self.cursor.restore(before)
            raise
        self.page = page
        return page
