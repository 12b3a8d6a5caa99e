from __future__ import annotations

from typing import List

import pytest

from evalbrowse.filters import ALL_NAMESPACES, Filter
from evalbrowse.pagination import NoPreviousPageError, PaginationCursor


def test_advance_retreat_and_filter_scenario() -> None:
    cursor = PaginationCursor(page_size=25)
    assert cursor.current_cursor is None
    assert cursor.cursor_stack == []

    cursor.advance("A")
    assert cursor.current_cursor == "A"
    assert cursor.cursor_stack == [None]

    cursor.advance("B")
    assert cursor.current_cursor == "B"
    assert cursor.cursor_stack == [None, "A"]

    cursor.retreat()
    assert cursor.current_cursor == "A"
    assert cursor.cursor_stack == [None]

    cursor.set_filter("status", "failed")
    assert cursor.current_cursor is None
    assert cursor.cursor_stack == []
    assert cursor.filters[Filter.STATUS] == "failed"


@pytest.mark.parametrize("tokens", [["a"], ["a", "b"], ["t1", "t2", "t3", "t4", "t5"]])
def test_retreating_every_advance_restores_initial_state(tokens: List[str]) -> None:
    cursor = PaginationCursor(page_size=10, filters={Filter.STATUS: "pending"})
    initial = cursor.snapshot()

    for token in tokens:
        cursor.advance(token)
    assert len(cursor.cursor_stack) == len(tokens)

    for _ in tokens:
        cursor.retreat()

    assert cursor.snapshot() == initial
    assert not cursor.can_retreat


def test_retreat_on_empty_stack_raises_and_keeps_cursor() -> None:
    cursor = PaginationCursor(page_size=10, current_cursor="restored")
    with pytest.raises(NoPreviousPageError):
        cursor.retreat()
    assert cursor.current_cursor == "restored"
    assert cursor.cursor_stack == []


def test_no_previous_page_is_an_index_error() -> None:
    with pytest.raises(IndexError):
        PaginationCursor(page_size=10).retreat()


@pytest.mark.parametrize("depth", [0, 1, 4])
def test_set_filter_resets_pagination(depth: int) -> None:
    cursor = PaginationCursor(page_size=10)
    for i in range(depth):
        cursor.advance(f"c{i}")

    cursor.set_filter(Filter.TRIGGERED_BY, "node-drain")

    assert cursor.current_cursor is None
    assert cursor.cursor_stack == []
    assert cursor.filters[Filter.TRIGGERED_BY] == "node-drain"
    assert cursor.filters[Filter.STATUS] is None
    assert cursor.filters[Filter.NAMESPACE] == ALL_NAMESPACES


def test_set_filter_accepts_query_and_member_names() -> None:
    cursor = PaginationCursor(page_size=10)
    cursor.set_filter("triggeredBy", "job-register")
    cursor.set_filter("triggered_by", "alloc-stop")
    cursor.set_filter("NAMESPACE", "prod")
    assert cursor.get_filter(Filter.TRIGGERED_BY) == "alloc-stop"
    assert cursor.get_filter("namespace") == "prod"


def test_unknown_filter_name_is_rejected() -> None:
    cursor = PaginationCursor(page_size=10)
    cursor.advance("A")
    with pytest.raises(ValueError):
        cursor.set_filter("color", "red")
    assert cursor.current_cursor == "A"
    assert cursor.cursor_stack == [None]


def test_set_page_size_keeps_position() -> None:
    cursor = PaginationCursor(page_size=25)
    cursor.advance("A")
    cursor.advance("B")

    cursor.set_page_size(50)

    assert cursor.page_size == 50
    assert cursor.current_cursor == "B"
    assert cursor.cursor_stack == [None, "A"]


@pytest.mark.parametrize("size", [0, -1, 2.5, "10", True])
def test_set_page_size_rejects_non_positive_integers(size) -> None:
    cursor = PaginationCursor(page_size=25)
    with pytest.raises(ValueError):
        cursor.set_page_size(size)
    assert cursor.page_size == 25


def test_constructor_rejects_bad_page_size() -> None:
    with pytest.raises(ValueError):
        PaginationCursor(page_size=0)


def test_refresh_clears_status_and_page_size_only() -> None:
    cursor = PaginationCursor(
        page_size=100,
        filters={
            Filter.STATUS: "failed",
            Filter.TRIGGERED_BY: "periodic-job",
            Filter.NAMESPACE: "batch",
        },
    )
    cursor.advance("A")
    cursor.advance("B")

    cursor.refresh(default_page_size=25)

    assert cursor.current_cursor is None
    assert cursor.cursor_stack == []
    assert cursor.page_size == 25
    assert cursor.filters[Filter.STATUS] is None
    assert cursor.filters[Filter.TRIGGERED_BY] == "periodic-job"
    assert cursor.filters[Filter.NAMESPACE] == "batch"


def test_can_retreat_tracks_stack() -> None:
    cursor = PaginationCursor(page_size=10)
    assert not cursor.can_retreat
    cursor.advance("A")
    assert cursor.can_retreat
    cursor.retreat()
    assert not cursor.can_retreat


@pytest.mark.parametrize("next_cursor,expected", [(None, False), ("", False), ("abc", True)])
def test_can_advance(next_cursor, expected: bool) -> None:
    assert PaginationCursor.can_advance(next_cursor) is expected


def test_listeners_are_notified_until_unsubscribed() -> None:
    cursor = PaginationCursor(page_size=10)
    seen = []
    unsubscribe = cursor.subscribe(lambda c: seen.append(c.current_cursor))

    cursor.advance("A")
    cursor.advance("B")
    cursor.retreat()
    unsubscribe()
    cursor.advance("C")

    assert seen == ["A", "B", "A"]


def test_failed_precondition_does_not_notify() -> None:
    cursor = PaginationCursor(page_size=10)
    calls = []
    cursor.subscribe(calls.append)
    with pytest.raises(NoPreviousPageError):
        cursor.retreat()
    with pytest.raises(ValueError):
        cursor.set_page_size(0)
    assert calls == []


def test_restore_returns_to_snapshot() -> None:
    cursor = PaginationCursor(page_size=10)
    cursor.advance("A")
    saved = cursor.snapshot()

    cursor.set_filter(Filter.STATUS, "blocked")
    cursor.set_page_size(5)
    cursor.restore(saved)

    assert cursor.snapshot() == saved
    assert cursor.current_cursor == "A"
    assert cursor.filters[Filter.STATUS] is None
    assert cursor.page_size == 10


def test_snapshot_is_independent_of_later_mutation() -> None:
    cursor = PaginationCursor(page_size=10)
    saved = cursor.snapshot()
    cursor.advance("A")
    assert saved.cursor_stack == ()
    assert saved.current_cursor is None


@pytest.mark.parametrize("value", [None, "", "*"])
def test_unfiltered_namespace_is_stored_as_wildcard(value) -> None:
    cursor = PaginationCursor(page_size=10, filters={Filter.NAMESPACE: value})
    assert cursor.filters[Filter.NAMESPACE] == ALL_NAMESPACES

    cursor.set_filter(Filter.NAMESPACE, "prod")
    cursor.set_filter(Filter.NAMESPACE, value)
    assert cursor.filters[Filter.NAMESPACE] == ALL_NAMESPACES
