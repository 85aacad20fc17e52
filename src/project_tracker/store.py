"""SQLite store reached through a prepare / run / get / all interface.

The store wraps a SQLAlchemy engine. Every statement is plain SQL text with
named ``:param`` binds; identifiers are never bound, callers splice only
vetted literals into the text. A ``Store`` is opened once by the host process
and handed to the query and mutation functions explicitly.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional

from loguru import logger
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from project_tracker.errors import ConstraintError

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS channel (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        channel_name TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS task (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        assigned_to INTEGER REFERENCES person(id) ON DELETE SET NULL,
        related_channel INTEGER REFERENCES channel(id) ON DELETE SET NULL,
        task_status TEXT,
        start_date TEXT,
        deadline TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS person (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        task_id INTEGER REFERENCES task(id) ON DELETE SET NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reminder (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        task_id INTEGER NOT NULL REFERENCES task(id),
        remainder_date TEXT,
        reminder_time TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_person_task ON person(task_id)",
    "CREATE INDEX IF NOT EXISTS idx_task_assigned_to ON task(assigned_to)",
    "CREATE INDEX IF NOT EXISTS idx_task_channel_status ON task(related_channel, task_status)",
    "CREATE INDEX IF NOT EXISTS idx_reminder_task ON reminder(task_id)",
)


@dataclass(frozen=True)
class RunResult:
    changes: int
    last_insert_id: Optional[int]


class Statement:
    """A prepared SQL text bound to a store (or to one open transaction)."""

    def __init__(self, store: "Store", sql: str) -> None:
        self._store = store
        self.sql = sql
        self._clause = text(sql)

    def run(self, params: Optional[Mapping[str, Any]] = None) -> RunResult:
        with self._store._connection() as conn:
            result = conn.execute(self._clause, dict(params or {}))
            run_result = RunResult(changes=result.rowcount, last_insert_id=result.lastrowid)
        logger.debug(
            "Statement executed",
            sql=self.sql,
            params=dict(params or {}),
            changes=run_result.changes,
        )
        return run_result

    def get(self, params: Optional[Mapping[str, Any]] = None) -> Optional[Dict[str, Any]]:
        with self._store._connection() as conn:
            row = conn.execute(self._clause, dict(params or {})).mappings().first()
        return dict(row) if row is not None else None

    def all(self, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        with self._store._connection() as conn:
            rows = conn.execute(self._clause, dict(params or {})).mappings().all()
        logger.debug("Query returned rows", sql=self.sql, count=len(rows))
        return [dict(row) for row in rows]


class Store:
    def __init__(self, engine: Engine, *, connection: Optional[Connection] = None) -> None:
        self.engine = engine
        self._bound = connection

    def prepare(self, sql: str) -> Statement:
        return Statement(self, sql)

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """Yield a store whose statements share one transaction.

        Commits when the block exits normally, rolls back on any exception.
        """
        if self._bound is not None:
            yield self
            return
        try:
            with self.engine.begin() as conn:
                yield Store(self.engine, connection=conn)
        except IntegrityError as exc:
            raise ConstraintError(str(exc.orig)) from exc

    def close(self) -> None:
        self.engine.dispose()
        logger.debug("Store closed", url=str(self.engine.url))

    def __enter__(self) -> "Store":
        return self

    def __exit__(self, *_) -> None:  # type: ignore[override]
        self.close()

    @contextmanager
    def _connection(self) -> Iterator[Connection]:
        if self._bound is not None:
            try:
                yield self._bound
            except IntegrityError as exc:
                raise ConstraintError(str(exc.orig)) from exc
            return
        try:
            with self.engine.begin() as conn:
                yield conn
        except IntegrityError as exc:
            raise ConstraintError(str(exc.orig)) from exc


def _database_url(location: str) -> str:
    if "://" in location:
        return location
    if location == ":memory:":
        return "sqlite://"
    path = Path(location).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path.as_posix()}"


def _enable_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def ensure_schema(engine: Engine) -> None:
    with engine.begin() as conn:
        for statement in SCHEMA_STATEMENTS:
            conn.execute(text(statement))


def open_store(location: str) -> Store:
    """Open the store at a file path, ``:memory:`` or a SQLAlchemy URL."""
    url = _database_url(location)
    if url in ("sqlite://", "sqlite:///:memory:"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", _enable_foreign_keys)
    ensure_schema(engine)
    logger.info("Store opened", url=url)
    return Store(engine)
