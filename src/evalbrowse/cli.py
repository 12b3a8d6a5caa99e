from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

from .client import EvaluationsClient, FetchError, Page
from .config import Config, load_config
from .filters import (
    STATUS_OPTIONS,
    TRIGGERED_BY_OPTIONS,
    Filter,
    Option,
    namespace_options,
)
from .pagination import PaginationCursor
from .query import from_query_string
from .settings import UserSettings, load_settings, save_settings
from .view import EvaluationsView

logger = logging.getLogger(__name__)

BROWSE_HELP = """\
Commands:
  n                 next page
  p                 previous page
  r                 refresh (first page, clear status, default page size)
  s <size>          set page size
  f <filter> <val>  set filter (status, triggeredBy, namespace); 'all' clears it
  q                 quit"""


def _settings_path(args: argparse.Namespace, cfg: Config) -> Path:
    return Path(args.settings_path) if args.settings_path else cfg.settings_path


def _initial_cursor(args: argparse.Namespace, default_page_size: int) -> PaginationCursor:
    if args.query:
        cursor = from_query_string(args.query, default_page_size)
    else:
        cursor = PaginationCursor(page_size=default_page_size)
    if args.page_size is not None:
        cursor.set_page_size(args.page_size)
    # Explicit flags override the query string
    for name, value in (
        (Filter.STATUS, args.status),
        (Filter.TRIGGERED_BY, args.triggered_by),
        (Filter.NAMESPACE, args.namespace),
    ):
        if value is not None:
            cursor.set_filter(name, _parse_filter_value(value))
    if args.cursor:
        cursor.current_cursor = args.cursor
    return cursor


def _parse_filter_value(value: str) -> Optional[str]:
    if value.lower() in ("", "all", "none"):
        return None
    return value


def _format_row(item: Dict) -> str:
    eval_id = str(item.get("ID") or item.get("id") or "")
    namespace = item.get("Namespace") or ""
    job_id = item.get("JobID") or ""
    triggered_by = item.get("TriggeredBy") or ""
    status = item.get("Status") or ""
    return f"{eval_id[:8]} | {namespace} | {job_id} | {triggered_by} | {status}"


def _print_page(view: EvaluationsView, page: Page, as_json: bool = False) -> None:
    if as_json:
        print(json.dumps(page.items, ensure_ascii=True, indent=2))
    elif not page.items:
        print("no evaluations")
    else:
        for item in page.items:
            if isinstance(item, dict):
                print(_format_row(item))

    position = f"page {view.depth + 1}"
    more = "more" if view.has_next else "last page"
    print(f"-- {position} | {len(page.items)} items | {more} | ?{view.query_string()}")


def _print_options(title: str, options: Iterable[Option]) -> None:
    print(f"{title}:")
    for option in options:
        key = option.key if option.key is not None else "all"
        print(f"  {key:<20} {option.label}")


def _open_view(
    args: argparse.Namespace, cfg: Config, client: EvaluationsClient
) -> tuple[EvaluationsView, Page]:
    settings_path = _settings_path(args, cfg)
    default_size = load_settings(settings_path, cfg.page_size).page_size
    try:
        cursor = _initial_cursor(args, default_size)
    except ValueError as e:
        print(f"Error: {e}")
        raise SystemExit(1)

    view = EvaluationsView(client, cfg, cursor=cursor, settings_path=settings_path)
    try:
        page = view.load()
    except FetchError as e:
        print(f"Error: {e}")
        raise SystemExit(1)
    return view, page


def cmd_list(args: argparse.Namespace) -> None:
    cfg = load_config()
    with EvaluationsClient(cfg) as client:
        view, page = _open_view(args, cfg, client)
        _print_page(view, page, as_json=args.json)
        if page.cursor:
            print(f"next cursor: {page.cursor}")


def cmd_browse(args: argparse.Namespace, read_line: Callable[[str], str] = input) -> None:
    cfg = load_config()
    with EvaluationsClient(cfg) as client:
        view, page = _open_view(args, cfg, client)
        _print_page(view, page)

        print(BROWSE_HELP)
        while True:
            try:
                line = read_line("> ").strip()
            except EOFError:
                break
            if not line:
                continue
            if line == "q":
                break
            try:
                page = _run_browse_command(view, line)
            except FetchError as e:
                print(f"Error: {e} (position unchanged)")
                continue
            except (IndexError, ValueError) as e:
                print(f"Error: {e}")
                continue
            if page is None:
                print(BROWSE_HELP)
            else:
                _print_page(view, page)


def _run_browse_command(view: EvaluationsView, line: str) -> Optional[Page]:
    parts = line.split(maxsplit=2)
    command = parts[0]
    if command == "n":
        return view.next_page()
    if command == "p":
        return view.previous_page()
    if command == "r":
        return view.refresh()
    if command == "s" and len(parts) == 2:
        try:
            size = int(parts[1])
        except ValueError:
            raise ValueError(f"invalid page size: {parts[1]!r}") from None
        return view.set_page_size(size)
    if command == "f" and len(parts) >= 2:
        value = parts[2] if len(parts) == 3 else ""
        return view.set_filter(parts[1], _parse_filter_value(value))
    return None


def cmd_options(args: argparse.Namespace) -> None:
    _print_options("status", STATUS_OPTIONS)
    _print_options("triggeredBy", TRIGGERED_BY_OPTIONS)
    if not args.namespaces:
        return

    cfg = load_config()
    with EvaluationsClient(cfg) as client:
        try:
            names = client.fetch_namespaces()
        except FetchError as e:
            print(f"Error: {e}")
            raise SystemExit(1)
    _print_options("namespace", namespace_options(names))


def cmd_page_size(args: argparse.Namespace) -> None:
    cfg = load_config()
    settings_path = _settings_path(args, cfg)

    if args.size is None:
        settings = load_settings(settings_path, cfg.page_size)
        print(settings.page_size)
        return

    if args.size < 1:
        print(f"Error: page size must be a positive integer, got {args.size}")
        raise SystemExit(1)
    save_settings(settings_path, UserSettings(page_size=args.size))
    print(f"Page size set to {args.size}")


def _add_view_arguments(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--status", default=None, help="Filter by status ('all' to clear)")
    cmd.add_argument("--triggered-by", default=None, help="Filter by trigger")
    cmd.add_argument("--namespace", default=None, help="Namespace ('*' for all)")
    cmd.add_argument("--page-size", type=int, default=None)
    cmd.add_argument("--cursor", default=None, help="Start from this cursor")
    cmd.add_argument(
        "--query",
        default=None,
        help="Restore state from a query string (e.g. 'status=failed&pageSize=10')",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="evalbrowse")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument(
        "--settings-path",
        default=None,
        help="Path to the settings file (default from EVALBROWSE_SETTINGS_PATH)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    cmd = subparsers.add_parser("list", help="Fetch and print one page of evaluations")
    _add_view_arguments(cmd)
    cmd.add_argument("--json", action="store_true", help="Print raw JSON items")
    cmd.set_defaults(func=cmd_list)

    cmd = subparsers.add_parser("browse", help="Page through evaluations interactively")
    _add_view_arguments(cmd)
    cmd.set_defaults(func=cmd_browse)

    cmd = subparsers.add_parser("options", help="List filter options")
    cmd.add_argument(
        "--namespaces",
        action="store_true",
        help="Also fetch namespaces from the server",
    )
    cmd.set_defaults(func=cmd_options)

    cmd = subparsers.add_parser("page-size", help="Show or set the stored page size")
    cmd.add_argument("size", nargs="?", type=int, default=None)
    cmd.set_defaults(func=cmd_page_size)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
