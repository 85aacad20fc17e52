"""Command line front-end for project-tracker.

Each command opens the store, drives one controller, waits for its queue to
settle and prints the refreshed table.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Type

import typer
from loguru import logger

from project_tracker.controllers import (
    BaseController,
    ChannelController,
    PersonController,
    ReminderController,
    TaskController,
)
from project_tracker.errors import TrackerError
from project_tracker.logging_config import setup_logging
from project_tracker.settings import Settings, get_settings
from project_tracker.store import open_store

app = typer.Typer(help="Terminal project and task tracker.", no_args_is_help=True)
person_app = typer.Typer(help="Manage persons.", no_args_is_help=True)
task_app = typer.Typer(help="Manage tasks.", no_args_is_help=True)
channel_app = typer.Typer(help="Manage channels.", no_args_is_help=True)
reminder_app = typer.Typer(help="Manage task reminders.", no_args_is_help=True)
app.add_typer(person_app, name="person")
app.add_typer(task_app, name="task")
app.add_typer(channel_app, name="channel")
app.add_typer(reminder_app, name="reminder")


@app.callback()
def main(
    ctx: typer.Context,
    database: Optional[str] = typer.Option(
        None, "--database", "-d", help="SQLite file or SQLAlchemy URL (overrides settings)"
    ),
) -> None:
    settings = get_settings()
    if database:
        settings.database_path = database
    setup_logging(settings)
    ctx.obj = settings


def _supplied(**fields: Any) -> Dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None}


def _render(rows: List[Dict[str, Any]]) -> None:
    if not rows:
        typer.echo("No rows.")
        return
    columns = list(rows[0])
    cells = [["" if row[c] is None else str(row[c]) for c in columns] for row in rows]
    widths = [max(len(c), *(len(line[i]) for line in cells)) for i, c in enumerate(columns)]
    typer.echo("  ".join(c.ljust(w) for c, w in zip(columns, widths)))
    typer.echo("  ".join("-" * w for w in widths))
    for line in cells:
        typer.echo("  ".join(value.ljust(w) for value, w in zip(line, widths)))


def _run(
    ctx: typer.Context,
    controller_cls: Type[BaseController],
    action: Callable[[Any], Any] = lambda controller: controller,
) -> None:
    settings: Settings = ctx.obj

    async def session() -> List[Dict[str, Any]]:
        store = open_store(settings.resolved_database())
        controller = None
        try:
            controller = controller_cls(store, page_size=settings.page_size)
            action(controller)
            await controller.ready()
            return controller.get_table()
        finally:
            if controller is not None:
                await controller.close()
            store.close()

    try:
        rows = asyncio.run(session())
    except TrackerError as exc:
        logger.debug("Command failed", error=str(exc))
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    _render(rows)


@app.command("init-db")
def init_db(ctx: typer.Context) -> None:
    """Create the database tables if they do not exist."""
    settings: Settings = ctx.obj
    location = settings.resolved_database()
    open_store(location).close()
    typer.echo(f"Database initialized at {location}")


# Persons


@person_app.command("list")
def person_list(
    ctx: typer.Context,
    desc: bool = typer.Option(False, "--desc", help="Sort names descending"),
    active_only: bool = typer.Option(False, "--active-only", help="Only persons with a task"),
    task_id: Optional[int] = typer.Option(None, "--task-id", help="Only persons on this task"),
) -> None:
    def action(controller: PersonController) -> None:
        controller.add_filter(filter_empty_tasks=active_only, task_id=task_id)
        if desc:
            controller.add_sort("DESC")

    _run(ctx, PersonController, action)


@person_app.command("add")
def person_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Person name"),
    task_id: Optional[int] = typer.Option(None, "--task-id", help="Current task"),
) -> None:
    _run(ctx, PersonController, lambda c: c.add_person(_supplied(name=name, task_id=task_id)))


@person_app.command("update")
def person_update(
    ctx: typer.Context,
    person_id: int = typer.Argument(..., help="Person ID"),
    name: Optional[str] = typer.Option(None, "--name"),
    task_id: Optional[int] = typer.Option(None, "--task-id"),
) -> None:
    _run(
        ctx,
        PersonController,
        lambda c: c.update_person(person_id, _supplied(name=name, task_id=task_id)),
    )


@person_app.command("remove")
def person_remove(ctx: typer.Context, person_id: int = typer.Argument(..., help="Person ID")) -> None:
    _run(ctx, PersonController, lambda c: c.remove_person(person_id))


# Tasks


@task_app.command("list")
def task_list(
    ctx: typer.Context,
    desc: bool = typer.Option(False, "--desc", help="Sort descending"),
    sort_by: str = typer.Option("title", "--sort-by", help="title, task_status, start_date or deadline"),
    assigned_to: Optional[int] = typer.Option(None, "--assigned-to"),
    status: Optional[str] = typer.Option(None, "--status"),
    channel: Optional[int] = typer.Option(None, "--channel"),
) -> None:
    def action(controller: TaskController) -> None:
        controller.add_filter(assigned_to=assigned_to, task_status=status, related_channel=channel)
        controller.set_sort_by(sort_by)
        if desc:
            controller.add_sort("DESC")

    _run(ctx, TaskController, action)


@task_app.command("add")
def task_add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Task title"),
    assigned_to: Optional[int] = typer.Option(None, "--assigned-to"),
    channel: Optional[int] = typer.Option(None, "--channel"),
    status: Optional[str] = typer.Option(None, "--status"),
    start_date: Optional[str] = typer.Option(None, "--start"),
    deadline: Optional[str] = typer.Option(None, "--deadline"),
) -> None:
    task = _supplied(
        title=title,
        assigned_to=assigned_to,
        related_channel=channel,
        task_status=status,
        start_date=start_date,
        deadline=deadline,
    )
    _run(ctx, TaskController, lambda c: c.add_task(task))


@task_app.command("update")
def task_update(
    ctx: typer.Context,
    task_id: int = typer.Argument(..., help="Task ID"),
    title: Optional[str] = typer.Option(None, "--title"),
    assigned_to: Optional[int] = typer.Option(None, "--assigned-to"),
    channel: Optional[int] = typer.Option(None, "--channel"),
    status: Optional[str] = typer.Option(None, "--status"),
    start_date: Optional[str] = typer.Option(None, "--start"),
    deadline: Optional[str] = typer.Option(None, "--deadline"),
) -> None:
    updates = _supplied(
        title=title,
        assigned_to=assigned_to,
        related_channel=channel,
        task_status=status,
        start_date=start_date,
        deadline=deadline,
    )
    _run(ctx, TaskController, lambda c: c.update_task(task_id, updates))


@task_app.command("complete")
def task_complete(ctx: typer.Context, task_id: int = typer.Argument(..., help="Task ID")) -> None:
    _run(ctx, TaskController, lambda c: c.mark_task_complete(task_id))


@task_app.command("remove")
def task_remove(ctx: typer.Context, task_id: int = typer.Argument(..., help="Task ID")) -> None:
    """Remove a task together with its reminders."""
    _run(ctx, TaskController, lambda c: c.remove_task(task_id))


@task_app.command("purge-completed")
def task_purge_completed(ctx: typer.Context) -> None:
    """Delete every task whose status is Completed."""
    _run(ctx, TaskController, lambda c: c.delete_completed_tasks())


# Channels


@channel_app.command("list")
def channel_list(
    ctx: typer.Context,
    desc: bool = typer.Option(False, "--desc", help="Sort names descending"),
) -> None:
    _run(ctx, ChannelController, lambda c: c.set_sort("DESC") if desc else c)


@channel_app.command("add")
def channel_add(ctx: typer.Context, name: str = typer.Argument(..., help="Channel name")) -> None:
    _run(ctx, ChannelController, lambda c: c.add_channel({"channel_name": name}))


@channel_app.command("rename")
def channel_rename(
    ctx: typer.Context,
    channel_id: int = typer.Argument(..., help="Channel ID"),
    name: str = typer.Argument(..., help="New channel name"),
) -> None:
    _run(ctx, ChannelController, lambda c: c.update_channel(channel_id, {"channel_name": name}))


@channel_app.command("remove")
def channel_remove(ctx: typer.Context, channel_id: int = typer.Argument(..., help="Channel ID")) -> None:
    _run(ctx, ChannelController, lambda c: c.remove_channel(channel_id))


# Reminders


@reminder_app.command("list")
def reminder_list(
    ctx: typer.Context,
    task_id: Optional[int] = typer.Option(None, "--task-id"),
    desc: bool = typer.Option(False, "--desc", help="Latest reminders first"),
) -> None:
    def action(controller: ReminderController) -> None:
        controller.add_filter(task_id=task_id)
        if desc:
            controller.add_sort("DESC")

    _run(ctx, ReminderController, action)


@reminder_app.command("add")
def reminder_add(
    ctx: typer.Context,
    task_id: int = typer.Argument(..., help="Task ID"),
    date: Optional[str] = typer.Option(None, "--date", help="e.g. 2026-01-15"),
    time: Optional[str] = typer.Option(None, "--time", help="e.g. 09:30"),
) -> None:
    reminder = _supplied(task_id=task_id, remainder_date=date, reminder_time=time)
    _run(ctx, ReminderController, lambda c: c.add_reminder(reminder))


@reminder_app.command("update")
def reminder_update(
    ctx: typer.Context,
    reminder_id: int = typer.Argument(..., help="Reminder ID"),
    task_id: Optional[int] = typer.Option(None, "--task-id"),
    date: Optional[str] = typer.Option(None, "--date"),
    time: Optional[str] = typer.Option(None, "--time"),
) -> None:
    updates = _supplied(task_id=task_id, remainder_date=date, reminder_time=time)
    _run(ctx, ReminderController, lambda c: c.update_reminder(reminder_id, updates))


@reminder_app.command("remove")
def reminder_remove(ctx: typer.Context, reminder_id: int = typer.Argument(..., help="Reminder ID")) -> None:
    _run(ctx, ReminderController, lambda c: c.remove_reminder(reminder_id))


if __name__ == "__main__":
    app()
