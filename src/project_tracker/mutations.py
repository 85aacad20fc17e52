"""Insert, update and delete operations for tracker entities.

``create_*`` and ``update_*`` are the explicit variants. ``add_or_update_*``
keeps the dict-based convenience used by the controllers: a payload with an
``id`` updates that row, a payload without one inserts a new row.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Type, Union

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from project_tracker.errors import NotFoundError, ValidationError
from project_tracker.models import (
    COMPLETED_STATUS,
    ChannelCreate,
    ChannelUpdate,
    PersonCreate,
    PersonUpdate,
    ReminderCreate,
    ReminderUpdate,
    TaskCreate,
    TaskUpdate,
)
from project_tracker.queries import CHANNEL, PERSON, REMINDER, TASK, EntitySpec, resolve_entity
from project_tracker.store import RunResult, Store

Payload = Union[Mapping[str, Any], BaseModel]

_CREATE_MODELS: Dict[str, Type[BaseModel]] = {
    PERSON.table: PersonCreate,
    TASK.table: TaskCreate,
    CHANNEL.table: ChannelCreate,
    REMINDER.table: ReminderCreate,
}
_UPDATE_MODELS: Dict[str, Type[BaseModel]] = {
    PERSON.table: PersonUpdate,
    TASK.table: TaskUpdate,
    CHANNEL.table: ChannelUpdate,
    REMINDER.table: ReminderUpdate,
}


def _parse(model: Type[BaseModel], payload: Payload) -> BaseModel:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ValidationError(f"Invalid {model.__name__} payload: {problems}") from exc


def _require_id(spec: EntitySpec, entity_id: Any) -> int:
    if isinstance(entity_id, bool) or not isinstance(entity_id, int):
        raise ValidationError(f"{spec.table.capitalize()} ID is required")
    return entity_id


def create(store: Store, entity: Union[str, EntitySpec], payload: Payload) -> RunResult:
    spec = resolve_entity(entity)
    values = _parse(_CREATE_MODELS[spec.table], payload).model_dump()
    columns = list(values)
    sql = (
        f"INSERT INTO {spec.table} ({', '.join(columns)}) "
        f"VALUES ({', '.join(f':{c}' for c in columns)})"
    )
    result = store.prepare(sql).run(values)
    logger.info("Row inserted", entity=spec.table, id=result.last_insert_id)
    return result


def update(
    store: Store, entity: Union[str, EntitySpec], entity_id: int, payload: Payload
) -> RunResult:
    """Write only the fields present in ``payload``; omitted fields keep their value."""
    spec = resolve_entity(entity)
    entity_id = _require_id(spec, entity_id)
    changes = _parse(_UPDATE_MODELS[spec.table], payload).model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    assignments = ", ".join(f"{column} = :{column}" for column in changes)
    result = store.prepare(f"UPDATE {spec.table} SET {assignments} WHERE id = :id").run(
        {**changes, "id": entity_id}
    )
    if result.changes == 0:
        raise NotFoundError(spec.table, entity_id)
    logger.info("Row updated", entity=spec.table, id=entity_id, fields=sorted(changes))
    return result


def add_or_update(store: Store, entity: Union[str, EntitySpec], payload: Mapping[str, Any]) -> RunResult:
    values = dict(payload)
    entity_id = values.pop("id", None)
    if entity_id is None:
        return create(store, entity, values)
    return update(store, entity, entity_id, values)


def remove(store: Store, entity: Union[str, EntitySpec], entity_id: int) -> RunResult:
    """Delete one row; a task takes its reminders with it in the same transaction."""
    spec = resolve_entity(entity)
    entity_id = _require_id(spec, entity_id)
    with store.transaction() as tx:
        existing = tx.prepare(f"SELECT id FROM {spec.table} WHERE id = :id").get({"id": entity_id})
        if existing is None:
            raise NotFoundError(spec.table, entity_id)
        if spec is TASK:
            cleanup = tx.prepare("DELETE FROM reminder WHERE task_id = :id").run({"id": entity_id})
            logger.debug("Removed task reminders", task_id=entity_id, count=cleanup.changes)
        result = tx.prepare(f"DELETE FROM {spec.table} WHERE id = :id").run({"id": entity_id})
    logger.info("Row removed", entity=spec.table, id=entity_id)
    return result


def delete_completed_tasks(store: Store) -> RunResult:
    with store.transaction() as tx:
        tx.prepare(
            "DELETE FROM reminder WHERE task_id IN "
            "(SELECT id FROM task WHERE task_status = :status)"
        ).run({"status": COMPLETED_STATUS})
        result = tx.prepare("DELETE FROM task WHERE task_status = :status").run(
            {"status": COMPLETED_STATUS}
        )
    logger.info("Completed tasks deleted", count=result.changes)
    return result


# Person


def create_person(store: Store, payload: Payload) -> RunResult:
    return create(store, PERSON, payload)


def update_person(store: Store, person_id: int, payload: Payload) -> RunResult:
    return update(store, PERSON, person_id, payload)


def add_or_update_person(store: Store, payload: Mapping[str, Any]) -> RunResult:
    return add_or_update(store, PERSON, payload)


def remove_person(store: Store, person_id: int) -> RunResult:
    return remove(store, PERSON, person_id)


# Task


def create_task(store: Store, payload: Payload) -> RunResult:
    return create(store, TASK, payload)


def update_task(store: Store, task_id: int, payload: Payload) -> RunResult:
    return update(store, TASK, task_id, payload)


def add_or_update_task(store: Store, payload: Mapping[str, Any]) -> RunResult:
    return add_or_update(store, TASK, payload)


def remove_task(store: Store, task_id: int) -> RunResult:
    return remove(store, TASK, task_id)


# Channel


def create_channel(store: Store, payload: Payload) -> RunResult:
    return create(store, CHANNEL, payload)


def update_channel(store: Store, channel_id: int, payload: Payload) -> RunResult:
    return update(store, CHANNEL, channel_id, payload)


def add_or_update_channel(store: Store, payload: Mapping[str, Any]) -> RunResult:
    return add_or_update(store, CHANNEL, payload)


def remove_channel(store: Store, channel_id: int) -> RunResult:
    return remove(store, CHANNEL, channel_id)


# Reminder


def create_reminder(store: Store, payload: Payload) -> RunResult:
    return create(store, REMINDER, payload)


def update_reminder(store: Store, reminder_id: int, payload: Payload) -> RunResult:
    return update(store, REMINDER, reminder_id, payload)


def add_or_update_reminder(store: Store, payload: Mapping[str, Any]) -> RunResult:
    return add_or_update(store, REMINDER, payload)


def remove_reminder(store: Store, reminder_id: int) -> RunResult:
    return remove(store, REMINDER, reminder_id)
