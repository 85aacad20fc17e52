"""Joined, read-only detail tables shown by the controllers.

Each builder returns a fresh ``Query``; running it is a pure read of the
current store state. Rows are dicts keyed by display labels, plus the ``id``
of the underlying entity so a selected row can be acted upon.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from project_tracker.errors import ValidationError
from project_tracker.models import COMPLETED_STATUS
from project_tracker.queries import DEFAULT_LIMIT, Query, check_limit, sort_direction, where_clause
from project_tracker.store import Store

# "<date> <time>" of a reminder, NULL when the reminder has neither part
REMINDER_AT = (
    "NULLIF(TRIM(COALESCE(reminder.remainder_date, '') || ' ' || "
    "COALESCE(reminder.reminder_time, '')), '')"
)

TASK_SORT_COLUMNS = {
    "title": "task.title",
    "task_status": "task.task_status",
    "start_date": "task.start_date",
    "deadline": "task.deadline",
}


def person_details_query(
    *,
    sort: str = "ASC",
    filter_empty_tasks: bool = False,
    task_id: Optional[int] = None,
    limit: int = DEFAULT_LIMIT,
) -> Query:
    conditions: List[str] = []
    params: Dict[str, Any] = {"limit": check_limit(limit)}
    if filter_empty_tasks:
        conditions.append("task.id IS NOT NULL")
    if task_id is not None:
        conditions.append("person.task_id = :task_id")
        params["task_id"] = task_id

    sql = f"""
        SELECT
            person.id AS id,
            person.name AS "Name",
            channel.channel_name AS "Current Channel",
            task.title AS "Current Task",
            task.deadline AS "Current Task Deadline",
            MIN({REMINDER_AT}) AS "Current Task Next Reminder",
            CASE WHEN task.id IS NOT NULL THEN 1 ELSE 0 END AS "Is Active"
        FROM person
        LEFT JOIN task ON person.task_id = task.id
        LEFT JOIN channel ON task.related_channel = channel.id
        LEFT JOIN reminder ON task.id = reminder.task_id
        {where_clause(conditions)}
        GROUP BY person.id
        ORDER BY person.name {sort_direction(sort)}, person.id
        LIMIT :limit
    """
    return Query(sql=sql, params=params)


def task_details_query(
    *,
    sort: str = "ASC",
    sort_by: str = "title",
    assigned_to: Optional[int] = None,
    task_status: Optional[str] = None,
    related_channel: Optional[int] = None,
    limit: int = DEFAULT_LIMIT,
) -> Query:
    order_column = TASK_SORT_COLUMNS.get(sort_by)
    if order_column is None:
        raise ValidationError(
            f"Cannot sort tasks by {sort_by!r}; allowed: {', '.join(TASK_SORT_COLUMNS)}"
        )

    conditions: List[str] = []
    params: Dict[str, Any] = {"limit": check_limit(limit)}
    if assigned_to is not None:
        conditions.append("task.assigned_to = :assigned_to")
        params["assigned_to"] = assigned_to
    if task_status is not None:
        conditions.append("task.task_status = :task_status")
        params["task_status"] = task_status
    if related_channel is not None:
        conditions.append("task.related_channel = :related_channel")
        params["related_channel"] = related_channel

    sql = f"""
        SELECT
            task.id AS id,
            task.title AS "Title",
            channel.channel_name AS "Related Channel",
            MIN({REMINDER_AT}) AS "Closest Reminder",
            task.deadline AS "Current Task Deadline",
            task.start_date AS "Start Date",
            person.name AS "Assigned To",
            task.task_status AS "Task Status"
        FROM task
        LEFT JOIN channel ON task.related_channel = channel.id
        LEFT JOIN reminder ON task.id = reminder.task_id
        LEFT JOIN person ON task.assigned_to = person.id
        {where_clause(conditions)}
        GROUP BY task.id
        ORDER BY {order_column} {sort_direction(sort)}, task.id
        LIMIT :limit
    """
    return Query(sql=sql, params=params)


def channel_details_query(*, sort: str = "ASC", limit: int = DEFAULT_LIMIT) -> Query:
    sql = f"""
        SELECT
            channel.id AS id,
            channel.channel_name AS "Channel Title",
            COUNT(DISTINCT person.id) AS "Number of Active Devs",
            COUNT(DISTINCT task.id) AS "Number of Active Tasks"
        FROM channel
        LEFT JOIN task ON channel.id = task.related_channel
            AND (task.task_status IS NULL OR task.task_status != :completed)
        LEFT JOIN person ON person.task_id = task.id
        GROUP BY channel.id
        ORDER BY channel.channel_name {sort_direction(sort)}, channel.id
        LIMIT :limit
    """
    return Query(sql=sql, params={"completed": COMPLETED_STATUS, "limit": check_limit(limit)})


def get_person_details(store: Store, **options: Any) -> List[Dict[str, Any]]:
    query = person_details_query(**options)
    return store.prepare(query.sql).all(query.params)


def get_task_details(store: Store, **options: Any) -> List[Dict[str, Any]]:
    query = task_details_query(**options)
    return store.prepare(query.sql).all(query.params)


def get_channel_details(store: Store, **options: Any) -> List[Dict[str, Any]]:
    query = channel_details_query(**options)
    return store.prepare(query.sql).all(query.params)
