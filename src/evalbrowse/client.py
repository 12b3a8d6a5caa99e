from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

import requests

from .config import Config
from .filters import ALL_NAMESPACES, Filter, is_unfiltered

logger = logging.getLogger(__name__)

RETRY_STATUS_CODES = {429, 500, 502, 503, 504}
NEXT_TOKEN_HEADER = "X-Nomad-NextToken"
TOKEN_HEADER = "X-Nomad-Token"

# Filter -> field name in the server-side filter expression
FILTER_FIELDS = {
    Filter.STATUS: "Status",
    Filter.TRIGGERED_BY: "TriggeredBy",
}


@dataclass
class Page:
    items: List[Dict[str, Any]]
    cursor: Optional[str]
    raw: Any


class FetchError(RuntimeError):
    """Raised when the list endpoint cannot be reached after all retries."""
    pass


class EvaluationsClient:
    def __init__(self, cfg: Config, session: Optional[requests.Session] = None) -> None:
        self.cfg = cfg
        self.session = session or requests.Session()
        if cfg.token:
            self.session.headers[TOKEN_HEADER] = cfg.token

    def __enter__(self) -> "EvaluationsClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self.session.close()

    def fetch_page(
        self,
        cursor: Optional[str],
        page_size: int,
        filters: Mapping[Filter, Optional[str]],
    ) -> Page:
        params = build_params(cursor, page_size, filters)
        data, headers = self._get_json("/evaluations", params=params)
        items = _extract_items(data)
        next_cursor = headers.get(NEXT_TOKEN_HEADER) or _extract_cursor(data)
        logger.debug(f"Fetched {len(items)} evaluations, next cursor {next_cursor!r}")
        return Page(items=items, cursor=next_cursor, raw=data)

    def iter_pages(
        self,
        page_size: int,
        filters: Mapping[Filter, Optional[str]],
        cursor: Optional[str] = None,
    ) -> Iterator[Page]:
        next_cursor = cursor
        while True:
            page = self.fetch_page(next_cursor, page_size, filters)
            yield page
            next_cursor = page.cursor
            if not next_cursor:
                break

    def fetch_namespaces(self) -> List[str]:
        data, _ = self._get_json("/namespaces", params={})
        names = []
        for item in _extract_items(data):
            if not isinstance(item, dict):
                continue
            name = item.get("Name") or item.get("name")
            if isinstance(name, str) and name:
                names.append(name)
        return names

    def _get_json(self, path: str, params: Dict[str, str]) -> tuple[Any, Mapping[str, str]]:
        url = f"{self.cfg.base_url.rstrip('/')}{path}"
        last_err: Optional[Exception] = None

        for attempt in range(self.cfg.max_retries + 1):
            try:
                resp = self.session.get(
                    url, params=params, timeout=self.cfg.request_timeout_s
                )
                if resp.status_code in RETRY_STATUS_CODES:
                    raise requests.HTTPError(
                        f"retryable status: {resp.status_code}", response=resp
                    )
                resp.raise_for_status()
                return resp.json(), resp.headers
            except (requests.RequestException, ValueError) as err:
                last_err = err
                logger.warning(f"Request to {path} failed (attempt {attempt + 1}): {err}")
                if attempt >= self.cfg.max_retries:
                    break
                _sleep_backoff(self.cfg.backoff_base_s, attempt)

        raise FetchError(f"request to {path} failed") from last_err


def build_params(
    cursor: Optional[str],
    page_size: int,
    filters: Mapping[Filter, Optional[str]],
) -> Dict[str, str]:
    params = {"per_page": str(page_size)}
    if cursor:
        params["next_token"] = cursor

    # Without a namespace the server only searches "default".
    namespace = filters.get(Filter.NAMESPACE)
    params["namespace"] = ALL_NAMESPACES if is_unfiltered(namespace) else namespace

    expression = build_filter_expression(filters)
    if expression:
        params["filter"] = expression
    return params


def build_filter_expression(filters: Mapping[Filter, Optional[str]]) -> str:
    clauses = []
    for name, field in FILTER_FIELDS.items():
        value = filters.get(name)
        if value:
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            clauses.append(f'{field} == "{escaped}"')
    return " and ".join(clauses)


def _sleep_backoff(base_s: float, attempt: int) -> None:
    # exponential backoff with jitter
    jitter = random.random() * 0.2
    delay = base_s * (2**attempt) + jitter
    time.sleep(delay)


def _extract_items(payload: Any) -> List[Dict[str, Any]]:
    if isinstance(payload, list):
        return payload
    if not isinstance(payload, dict):
        return []
    for key in ("records", "items", "evaluations", "data", "results"):
        val = payload.get(key)
        if isinstance(val, list):
            return val
    for val in payload.values():
        if isinstance(val, list):
            return val
    return []


def _extract_cursor(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in ("nextToken", "next_cursor", "nextCursor", "cursor"):
        val = payload.get(key)
        if isinstance(val, str) and val:
            return val
    return None
