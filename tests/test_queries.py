# tests/test_queries.py

from __future__ import annotations

import pytest

from project_tracker import mutations
from project_tracker.errors import ValidationError
from project_tracker.queries import (
    DEFAULT_LIMIT,
    build_select,
    get_channels,
    get_persons,
    get_reminders,
    get_tasks,
    sort_direction,
)


def test_no_filters_selects_whole_table_with_default_limit() -> None:
    query = build_select("task")

    assert "WHERE" not in query.sql
    assert "ORDER BY title ASC" in query.sql
    assert query.params == {"limit": DEFAULT_LIMIT}
    assert query.single is False


def test_one_condition_per_supplied_filter() -> None:
    query = build_select("task", assigned_to=3, task_status="Open", related_channel=None)

    assert query.sql.count(" = :") == 2
    assert "assigned_to = :assigned_to AND task_status = :task_status" in query.sql
    assert query.params == {"assigned_to": 3, "task_status": "Open", "limit": DEFAULT_LIMIT}


def test_values_are_bound_not_spliced() -> None:
    hostile = "x'; DROP TABLE task; --"
    query = build_select("task", task_status=hostile)

    assert hostile not in query.sql
    assert query.params["task_status"] == hostile


def test_flag_adds_condition_only_when_truthy() -> None:
    assert "task_id IS NOT NULL" in build_select("person", filter_empty_tasks=True).sql
    assert "WHERE" not in build_select("person", filter_empty_tasks=False).sql


def test_id_marks_single_row() -> None:
    query = build_select("channel", id=4)

    assert query.single is True
    assert query.params["id"] == 4


@pytest.mark.parametrize("direction", ["asc", "DESC", " desc "])
def test_sort_direction_is_case_insensitive(direction: str) -> None:
    assert sort_direction(direction) in ("ASC", "DESC")


def test_sort_direction_defaults_to_ascending() -> None:
    assert sort_direction(None) == "ASC"
    assert sort_direction("") == "ASC"


@pytest.mark.parametrize("bad", ["ASC; DROP TABLE task", "sideways", "1"])
def test_sort_direction_outside_allow_list_rejected(bad: str) -> None:
    with pytest.raises(ValidationError):
        build_select("task", sort=bad)


def test_order_by_outside_allow_list_rejected() -> None:
    with pytest.raises(ValidationError):
        build_select("person", order_by="name; DELETE FROM person")


def test_unknown_filter_and_entity_rejected() -> None:
    with pytest.raises(ValidationError):
        build_select("person", nickname="x")
    with pytest.raises(ValidationError):
        build_select("project")


@pytest.mark.parametrize("limit", [0, -5, True, "10"])
def test_invalid_limit_rejected(limit) -> None:
    with pytest.raises(ValidationError):
        build_select("task", limit=limit)


def test_get_single_row_returns_dict_or_none(store, seeded) -> None:
    docs = seeded["channels"]["docs"]

    assert get_channels(store, id=docs) == {"id": docs, "channel_name": "docs"}
    assert get_channels(store, id=9999) is None


def test_get_many_honours_filters_sort_and_limit(store, seeded) -> None:
    names = [row["name"] for row in get_persons(store, sort="DESC")]
    assert names == ["Bob", "Ann"]

    active = get_persons(store, filter_empty_tasks=True)
    assert [row["name"] for row in active] == ["Ann"]

    assert len(get_tasks(store, limit=2)) == 2
    release_tasks = get_tasks(store, related_channel=seeded["channels"]["release"])
    assert sorted(row["title"] for row in release_tasks) == ["Ship v1", "Triage bugs"]


def test_reminders_filtered_by_task(store, seeded) -> None:
    write_docs = seeded["tasks"]["write_docs"]

    rows = get_reminders(store, task_id=write_docs)

    assert [row["remainder_date"] for row in rows] == ["2026-01-15", "2026-01-16"]


def test_empty_result_is_empty_list(store) -> None:
    assert get_tasks(store) == []
    mutations.create_channel(store, {"channel_name": "ops"})
    assert get_tasks(store) == []
