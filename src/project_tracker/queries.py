"""Parameterized SELECT builders for the four tracker tables.

Filter values always travel as bound parameters. Table names, ORDER BY
columns and sort directions cannot be bound, so they are checked against a
per-entity allow-list and spliced into the SQL text only after that check.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from loguru import logger

from project_tracker.errors import ValidationError
from project_tracker.store import Store

DEFAULT_LIMIT = 50
SORT_DIRECTIONS = ("ASC", "DESC")


@dataclass(frozen=True)
class EntitySpec:
    table: str
    # option name -> column compared for equality with a bound value
    filters: Mapping[str, str]
    # first entry is the default ORDER BY column
    sortable: Tuple[str, ...]
    # option name -> condition added when the option is truthy
    flags: Mapping[str, str] = field(default_factory=dict)


PERSON = EntitySpec(
    table="person",
    filters={"id": "id", "task_id": "task_id"},
    sortable=("name", "id", "task_id"),
    flags={"filter_empty_tasks": "task_id IS NOT NULL"},
)
TASK = EntitySpec(
    table="task",
    filters={
        "id": "id",
        "assigned_to": "assigned_to",
        "related_channel": "related_channel",
        "task_status": "task_status",
    },
    sortable=("title", "id", "task_status", "start_date", "deadline"),
)
CHANNEL = EntitySpec(
    table="channel",
    filters={"id": "id"},
    sortable=("channel_name", "id"),
)
REMINDER = EntitySpec(
    table="reminder",
    filters={"id": "id", "task_id": "task_id"},
    sortable=("remainder_date", "id", "reminder_time", "task_id"),
)

ENTITIES: Dict[str, EntitySpec] = {spec.table: spec for spec in (PERSON, TASK, CHANNEL, REMINDER)}


@dataclass(frozen=True)
class Query:
    sql: str
    params: Dict[str, Any]
    single: bool = False


def sort_direction(value: Optional[str]) -> str:
    direction = (value or "ASC").strip().upper()
    if direction not in SORT_DIRECTIONS:
        raise ValidationError(f"Sort direction must be ASC or DESC, got {value!r}")
    return direction


def check_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValidationError(f"Limit must be a positive integer, got {limit!r}")
    return limit


def where_clause(conditions: List[str]) -> str:
    return f"WHERE {' AND '.join(conditions)}" if conditions else ""


def resolve_entity(entity: Union[str, EntitySpec]) -> EntitySpec:
    if isinstance(entity, EntitySpec):
        return entity
    try:
        return ENTITIES[entity]
    except KeyError:
        raise ValidationError(f"Unknown entity {entity!r}") from None


def build_select(
    entity: Union[str, EntitySpec],
    *,
    order_by: Optional[str] = None,
    sort: str = "ASC",
    limit: int = DEFAULT_LIMIT,
    **options: Any,
) -> Query:
    """Build ``SELECT * FROM <table>`` for the supplied filters.

    Options set to ``None`` (or ``False`` for flags) are treated as omitted
    and add no condition. Supplying ``id`` marks the query as single-row.
    """
    spec = resolve_entity(entity)
    unknown = set(options) - set(spec.filters) - set(spec.flags)
    if unknown:
        raise ValidationError(
            f"Unsupported filter(s) for {spec.table}: {', '.join(sorted(unknown))}"
        )

    column = order_by or spec.sortable[0]
    if column not in spec.sortable:
        raise ValidationError(
            f"Cannot order {spec.table} by {column!r}; allowed: {', '.join(spec.sortable)}"
        )
    direction = sort_direction(sort)

    conditions: List[str] = []
    params: Dict[str, Any] = {}
    for option, col in spec.filters.items():
        value = options.get(option)
        if value is None:
            continue
        conditions.append(f"{col} = :{option}")
        params[option] = value
    for option, condition in spec.flags.items():
        if options.get(option):
            conditions.append(condition)
    params["limit"] = check_limit(limit)

    sql = (
        f"SELECT * FROM {spec.table} {where_clause(conditions)} "
        f"ORDER BY {column} {direction} LIMIT :limit"
    )
    return Query(sql=sql, params=params, single=options.get("id") is not None)


def execute(store: Store, query: Query) -> Union[List[Dict[str, Any]], Dict[str, Any], None]:
    statement = store.prepare(query.sql)
    if query.single:
        return statement.get(query.params)
    return statement.all(query.params)


def get_persons(store: Store, **options: Any):
    return execute(store, build_select(PERSON, **options))


def get_tasks(store: Store, **options: Any):
    return execute(store, build_select(TASK, **options))


def get_channels(store: Store, **options: Any):
    return execute(store, build_select(CHANNEL, **options))


def get_reminders(store: Store, **options: Any):
    query = build_select(REMINDER, **options)
    logger.debug("Loading reminders", params=query.params)
    return execute(store, query)
