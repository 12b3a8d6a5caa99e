"""Mirror pagination state onto query parameters and back."""
from __future__ import annotations

from typing import Dict, Mapping, Optional
from urllib.parse import parse_qsl, urlencode

from .filters import Filter
from .pagination import PaginationCursor

CURSOR_PARAM = "nextToken"
PAGE_SIZE_PARAM = "pageSize"


def to_query_params(cursor: PaginationCursor) -> Dict[str, str]:
    params = {PAGE_SIZE_PARAM: str(cursor.page_size)}
    if cursor.current_cursor is not None:
        params[CURSOR_PARAM] = cursor.current_cursor
    for name, value in cursor.filters.items():
        if value is not None:
            params[name.value] = value
    return params


def from_query_params(
    params: Mapping[str, str], default_page_size: int
) -> PaginationCursor:
    # The cursor stack is not addressable, so a restored view can only go forward.
    raw_size = params.get(PAGE_SIZE_PARAM)
    if raw_size is None:
        page_size = default_page_size
    else:
        try:
            page_size = int(raw_size)
        except ValueError:
            raise ValueError(f"invalid {PAGE_SIZE_PARAM}: {raw_size!r}") from None

    filters: Dict[Filter, Optional[str]] = {}
    for name in Filter:
        if name.value in params:
            filters[name] = params[name.value] or None

    return PaginationCursor(
        page_size=page_size,
        filters=filters,
        current_cursor=params.get(CURSOR_PARAM) or None,
    )


def to_query_string(cursor: PaginationCursor) -> str:
    return urlencode(to_query_params(cursor))


def from_query_string(query: str, default_page_size: int) -> PaginationCursor:
    params = dict(parse_qsl(query.lstrip("?"), keep_blank_values=True))
    return from_query_params(params, default_page_size)
