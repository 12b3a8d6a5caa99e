"""Cursor-based pagination state for lists that only expose forward cursors.

The server hands out an opaque token for the next page and nothing else, so
going back means remembering every cursor we have already used. The stack
holds those cursors, most recent last.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Tuple, Union

from .filters import ALL_NAMESPACES, Filter, is_unfiltered

logger = logging.getLogger(__name__)

Listener = Callable[["PaginationCursor"], None]

DEFAULT_FILTERS: Dict[Filter, Optional[str]] = {
    Filter.STATUS: None,
    Filter.TRIGGERED_BY: None,
    Filter.NAMESPACE: ALL_NAMESPACES,
}


class NoPreviousPageError(IndexError):
    """Raised when retreating with an empty cursor stack."""
    pass


class NoNextPageError(IndexError):
    """Raised when asking for the next page after the last one."""
    pass


@dataclass(frozen=True)
class CursorSnapshot:
    page_size: int
    current_cursor: Optional[str]
    cursor_stack: Tuple[Optional[str], ...]
    filters: Tuple[Tuple[Filter, Optional[str]], ...]


class PaginationCursor:
    def __init__(
        self,
        page_size: int,
        filters: Optional[Mapping[Union[Filter, str], Optional[str]]] = None,
        current_cursor: Optional[str] = None,
    ) -> None:
        _check_page_size(page_size)
        self.page_size = page_size
        self.current_cursor = current_cursor
        self.cursor_stack: List[Optional[str]] = []
        self.filters: Dict[Filter, Optional[str]] = dict(DEFAULT_FILTERS)
        for name, value in (filters or {}).items():
            key = Filter.parse(name)
            self.filters[key] = _canonical(key, value)
        self._listeners: List[Listener] = []

    @property
    def can_retreat(self) -> bool:
        return bool(self.cursor_stack)

    @staticmethod
    def can_advance(next_cursor: Optional[str]) -> bool:
        """True when the latest fetch reported a next page."""
        return bool(next_cursor)

    def advance(self, candidate_cursor: str) -> None:
        """Move forward to the page identified by ``candidate_cursor``.

        Callers gate this with ``can_advance``; the cursor is not re-validated.
        """
        self.cursor_stack.append(self.current_cursor)
        self.current_cursor = candidate_cursor
        logger.debug(f"Advanced to {candidate_cursor!r} (depth {len(self.cursor_stack)})")
        self._notify()

    def retreat(self) -> None:
        if not self.cursor_stack:
            raise NoPreviousPageError("no previous page to return to")
        self.current_cursor = self.cursor_stack.pop()
        logger.debug(f"Retreated to {self.current_cursor!r} (depth {len(self.cursor_stack)})")
        self._notify()

    def set_filter(self, name: Union[Filter, str], value: Optional[str]) -> None:
        key = Filter.parse(name)
        self.filters[key] = _canonical(key, value)
        self._reset_cursors()
        logger.debug(f"Filter {key.value}={value!r}, pagination reset")
        self._notify()

    def set_page_size(self, new_size: int) -> None:
        # Page length only changes batching, so the position is kept.
        _check_page_size(new_size)
        self.page_size = new_size
        self._notify()

    def refresh(self, default_page_size: int) -> None:
        """Back to the first page, clearing status and restoring the default size.

        Triggered-by and namespace selections survive a refresh.
        """
        _check_page_size(default_page_size)
        self._reset_cursors()
        self.filters[Filter.STATUS] = None
        self.page_size = default_page_size
        self._notify()

    def get_filter(self, name: Union[Filter, str]) -> Optional[str]:
        return self.filters[Filter.parse(name)]

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> CursorSnapshot:
        return CursorSnapshot(
            page_size=self.page_size,
            current_cursor=self.current_cursor,
            cursor_stack=tuple(self.cursor_stack),
            filters=tuple(self.filters.items()),
        )

    def restore(self, snapshot: CursorSnapshot) -> None:
        self.page_size = snapshot.page_size
        self.current_cursor = snapshot.current_cursor
        self.cursor_stack = list(snapshot.cursor_stack)
        self.filters = dict(snapshot.filters)
        self._notify()

    def _reset_cursors(self) -> None:
        self.current_cursor = None
        self.cursor_stack = []

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    def __repr__(self) -> str:
        filters = {k.value: v for k, v in self.filters.items()}
        return (
            f"PaginationCursor(page_size={self.page_size}, "
            f"current_cursor={self.current_cursor!r}, "
            f"cursor_stack={self.cursor_stack!r}, filters={filters!r})"
        )


def _check_page_size(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"page size must be a positive integer, got {value!r}")


def _canonical(key: Filter, value: Optional[str]) -> Optional[str]:
    # An unfiltered namespace is always stored as "*".
    if key is Filter.NAMESPACE and is_unfiltered(value):
        return ALL_NAMESPACES
    return value
