"""Per-entity controllers with chainable, queued operations.

A controller caches one table (a list of row dicts), remembers its filters,
sort direction and a selection cursor, and pushes every mutate-then-refresh
unit through its own ``OperationQueue``. Methods that change data or view
state return the controller right away; ``await controller.ready()`` before
reading the table when the settled state matters.

Controllers must be created while an event loop is running, since the
constructor already queues the first refresh.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from loguru import logger

from project_tracker import mutations
from project_tracker.errors import ValidationError
from project_tracker.models import COMPLETED_STATUS
from project_tracker.operation_queue import ErrorHandler, OperationQueue
from project_tracker.queries import DEFAULT_LIMIT, get_reminders, sort_direction
from project_tracker.store import Store
from project_tracker.views import (
    TASK_SORT_COLUMNS,
    get_channel_details,
    get_person_details,
    get_task_details,
)

Row = Dict[str, Any]


class BaseController:
    entity = "row"

    def __init__(self, store: Store, *, page_size: int = DEFAULT_LIMIT) -> None:
        self._store = store
        self._page_size = page_size
        self._sort = "ASC"
        self._filters: Dict[str, Any] = self._default_filters()
        self._table: List[Row] = []
        self._selected = 0
        self._operations = OperationQueue(name=type(self).__name__)
        self._queue_operation(self.refresh)

    # -- hooks -------------------------------------------------------------

    def _default_filters(self) -> Dict[str, Any]:
        return {}

    def _load(self) -> List[Row]:
        raise NotImplementedError

    # -- queue -------------------------------------------------------------

    def _queue_operation(self, operation, on_error: Optional[ErrorHandler] = None):
        self._operations.submit(operation, on_error=on_error)
        return self

    def _queue_mutation(self, mutation: Callable[[], Any], on_error: Optional[ErrorHandler] = None):
        async def mutate_and_refresh() -> None:
            mutation()
            await self.refresh()

        return self._queue_operation(mutate_and_refresh, on_error)

    async def refresh(self):
        """Reload the cached table with the current filters and sort."""
        self._table = self._load()
        self._clamp_selection()
        logger.debug("Table refreshed", controller=type(self).__name__, rows=len(self._table))
        return self

    async def ready(self):
        """Wait for every queued operation; re-raise the oldest unreported failure."""
        await self._operations.join()
        return self

    async def close(self) -> None:
        await self._operations.close()

    # -- filters and sort --------------------------------------------------

    def add_filter(self, on_error: Optional[ErrorHandler] = None, **filters: Any):
        unknown = set(filters) - set(self._default_filters())
        if unknown:
            raise ValidationError(
                f"Unsupported {self.entity} filter(s): {', '.join(sorted(unknown))}"
            )
        self._filters = {**self._filters, **filters}
        return self._queue_operation(self.refresh, on_error)

    def add_sort(self, sort: str, on_error: Optional[ErrorHandler] = None):
        self._sort = sort_direction(sort)
        return self._queue_operation(self.refresh, on_error)

    def reset_filters(self, on_error: Optional[ErrorHandler] = None):
        self._filters = self._default_filters()
        return self._queue_operation(self.refresh, on_error)

    def reset_sort(self, on_error: Optional[ErrorHandler] = None):
        self._sort = "ASC"
        return self._queue_operation(self.refresh, on_error)

    # -- selection cursor --------------------------------------------------

    @property
    def selected_index(self) -> int:
        return self._selected

    def increment_selected(self):
        if self._selected < len(self._table) - 1:
            self._selected += 1
        else:
            self._selected = 0
        return self

    def decrement_selected(self):
        if self._selected > 0:
            self._selected -= 1
        else:
            self._selected = max(len(self._table) - 1, 0)
        return self

    def get_selected(self) -> Optional[Row]:
        if 0 <= self._selected < len(self._table):
            return self._table[self._selected]
        return None

    def get_table(self) -> List[Row]:
        return self._table

    def _selected_id(self) -> int:
        row = self.get_selected()
        if row is None:
            raise ValidationError(f"No {self.entity} selected")
        return row["id"]

    def _clamp_selection(self) -> None:
        if self._selected >= len(self._table):
            self._selected = max(len(self._table) - 1, 0)


class PersonController(BaseController):
    entity = "person"

    def _default_filters(self) -> Dict[str, Any]:
        return {"task_id": None, "filter_empty_tasks": False}

    def _load(self) -> List[Row]:
        return get_person_details(
            self._store,
            sort=self._sort,
            limit=self._page_size,
            **self._filters,
        )

    def add_person(self, person: Mapping[str, Any], on_error: Optional[ErrorHandler] = None):
        payload = dict(person)
        return self._queue_mutation(lambda: mutations.create_person(self._store, payload), on_error)

    def update_person(
        self, person_id: int, updates: Mapping[str, Any], on_error: Optional[ErrorHandler] = None
    ):
        payload = dict(updates)
        return self._queue_mutation(
            lambda: mutations.update_person(self._store, person_id, payload), on_error
        )

    def update_current_person(self, updates: Mapping[str, Any], on_error: Optional[ErrorHandler] = None):
        return self.update_person(self._selected_id(), updates, on_error)

    def remove_person(self, person_id: int, on_error: Optional[ErrorHandler] = None):
        return self._queue_mutation(lambda: mutations.remove_person(self._store, person_id), on_error)

    def remove_selected_person(self, on_error: Optional[ErrorHandler] = None):
        return self.remove_person(self._selected_id(), on_error)

    def increment_selected_person(self):
        return self.increment_selected()

    def decrement_selected_person(self):
        return self.decrement_selected()

    def get_selected_person(self) -> Optional[Row]:
        return self.get_selected()

    def get_person_table(self) -> List[Row]:
        return self.get_table()


class TaskController(BaseController):
    entity = "task"

    def __init__(self, store: Store, *, page_size: int = DEFAULT_LIMIT) -> None:
        self._sort_by = "title"
        super().__init__(store, page_size=page_size)

    def _default_filters(self) -> Dict[str, Any]:
        return {"assigned_to": None, "related_channel": None, "task_status": None}

    def _load(self) -> List[Row]:
        return get_task_details(
            self._store,
            sort=self._sort,
            sort_by=self._sort_by,
            limit=self._page_size,
            **self._filters,
        )

    def add_task(self, task: Mapping[str, Any], on_error: Optional[ErrorHandler] = None):
        payload = dict(task)
        return self._queue_mutation(lambda: mutations.create_task(self._store, payload), on_error)

    def update_task(
        self, task_id: int, updates: Mapping[str, Any], on_error: Optional[ErrorHandler] = None
    ):
        payload = dict(updates)
        return self._queue_mutation(
            lambda: mutations.update_task(self._store, task_id, payload), on_error
        )

    def update_current_task(self, updates: Mapping[str, Any], on_error: Optional[ErrorHandler] = None):
        return self.update_task(self._selected_id(), updates, on_error)

    def remove_task(self, task_id: int, on_error: Optional[ErrorHandler] = None):
        return self._queue_mutation(lambda: mutations.remove_task(self._store, task_id), on_error)

    def remove_selected_task(self, on_error: Optional[ErrorHandler] = None):
        return self.remove_task(self._selected_id(), on_error)

    def mark_task_complete(self, task_id: int, on_error: Optional[ErrorHandler] = None):
        return self.update_task(task_id, {"task_status": COMPLETED_STATUS}, on_error)

    def delete_completed_tasks(self, on_error: Optional[ErrorHandler] = None):
        return self._queue_mutation(lambda: mutations.delete_completed_tasks(self._store), on_error)

    def set_sort_by(self, sort_by: str, on_error: Optional[ErrorHandler] = None):
        if sort_by not in TASK_SORT_COLUMNS:
            raise ValidationError(
                f"Cannot sort tasks by {sort_by!r}; allowed: {', '.join(TASK_SORT_COLUMNS)}"
            )
        self._sort_by = sort_by
        return self._queue_operation(self.refresh, on_error)

    def reset_sort(self, on_error: Optional[ErrorHandler] = None):
        self._sort_by = "title"
        return super().reset_sort(on_error)

    async def get_task_details_table(self, **options: Any) -> List[Row]:
        """Run an ad-hoc task detail query once the queued work has finished."""
        await self._operations.drain()
        return get_task_details(self._store, **options)

    def increment_selected_task(self):
        return self.increment_selected()

    def decrement_selected_task(self):
        return self.decrement_selected()

    def get_selected_task(self) -> Optional[Row]:
        return self.get_selected()

    def get_task_table(self) -> List[Row]:
        return self.get_table()


class ChannelController(BaseController):
    entity = "channel"

    def _load(self) -> List[Row]:
        return get_channel_details(self._store, sort=self._sort, limit=self._page_size)

    def add_channel(self, channel: Mapping[str, Any], on_error: Optional[ErrorHandler] = None):
        payload = dict(channel)
        return self._queue_mutation(lambda: mutations.create_channel(self._store, payload), on_error)

    def update_channel(
        self, channel_id: int, updates: Mapping[str, Any], on_error: Optional[ErrorHandler] = None
    ):
        payload = dict(updates)
        return self._queue_mutation(
            lambda: mutations.update_channel(self._store, channel_id, payload), on_error
        )

    def remove_channel(self, channel_id: int, on_error: Optional[ErrorHandler] = None):
        return self._queue_mutation(lambda: mutations.remove_channel(self._store, channel_id), on_error)

    def remove_selected_channel(self, on_error: Optional[ErrorHandler] = None):
        return self.remove_channel(self._selected_id(), on_error)

    def set_sort(self, sort: str, on_error: Optional[ErrorHandler] = None):
        return self.add_sort(sort, on_error)

    def reset_filters(self, on_error: Optional[ErrorHandler] = None):
        self._sort = "ASC"
        return super().reset_filters(on_error)

    def get_selected_channel(self) -> Optional[Row]:
        return self.get_selected()

    def get_channel_table(self) -> List[Row]:
        return self.get_table()


class ReminderController(BaseController):
    entity = "reminder"

    def _default_filters(self) -> Dict[str, Any]:
        return {"task_id": None}

    def _load(self) -> List[Row]:
        return get_reminders(
            self._store,
            sort=self._sort,
            limit=self._page_size,
            task_id=self._filters["task_id"],
        )

    def add_reminder(self, reminder: Mapping[str, Any], on_error: Optional[ErrorHandler] = None):
        payload = dict(reminder)
        return self._queue_mutation(lambda: mutations.create_reminder(self._store, payload), on_error)

    def update_reminder(
        self, reminder_id: int, updates: Mapping[str, Any], on_error: Optional[ErrorHandler] = None
    ):
        payload = dict(updates)
        return self._queue_mutation(
            lambda: mutations.update_reminder(self._store, reminder_id, payload), on_error
        )

    def update_current_reminder(self, updates: Mapping[str, Any], on_error: Optional[ErrorHandler] = None):
        return self.update_reminder(self._selected_id(), updates, on_error)

    def remove_reminder(self, reminder_id: int, on_error: Optional[ErrorHandler] = None):
        return self._queue_mutation(lambda: mutations.remove_reminder(self._store, reminder_id), on_error)

    def remove_selected_reminder(self, on_error: Optional[ErrorHandler] = None):
        return self.remove_reminder(self._selected_id(), on_error)

    def increment_selected_reminder(self):
        return self.increment_selected()

    def decrement_selected_reminder(self):
        return self.decrement_selected()

    def get_selected_reminder(self) -> Optional[Row]:
        return self.get_selected()

    def get_reminder_table(self) -> List[Row]:
        return self.get_table()
