# tests/conftest.py

from __future__ import annotations

import pytest

from project_tracker import mutations
from project_tracker.store import Store, open_store


@pytest.fixture()
def store():
    """Fresh in-memory database per test."""
    store = open_store(":memory:")
    yield store
    store.close()


@pytest.fixture()
def seeded(store: Store) -> dict:
    """
    Two channels, three tasks, two persons and a few reminders.

    Ann works on "Write docs" in #docs, Bob has no task; "Ship v1" is
    already completed.
    """
    docs = mutations.create_channel(store, {"channel_name": "docs"}).last_insert_id
    release = mutations.create_channel(store, {"channel_name": "release"}).last_insert_id

    write_docs = mutations.create_task(
        store,
        {
            "title": "Write docs",
            "related_channel": docs,
            "task_status": "In Progress",
            "deadline": "2026-01-20",
        },
    ).last_insert_id
    ship = mutations.create_task(
        store,
        {"title": "Ship v1", "related_channel": release, "task_status": "Completed"},
    ).last_insert_id
    triage = mutations.create_task(
        store, {"title": "Triage bugs", "related_channel": release}
    ).last_insert_id

    ann = mutations.create_person(store, {"name": "Ann", "task_id": write_docs}).last_insert_id
    bob = mutations.create_person(store, {"name": "Bob"}).last_insert_id
    mutations.update_task(store, write_docs, {"assigned_to": ann})

    mutations.create_reminder(
        store, {"task_id": write_docs, "remainder_date": "2026-01-16", "reminder_time": "09:00"}
    )
    mutations.create_reminder(
        store, {"task_id": write_docs, "remainder_date": "2026-01-15", "reminder_time": "10:30"}
    )
    mutations.create_reminder(store, {"task_id": ship, "remainder_date": "2026-01-01"})

    return {
        "channels": {"docs": docs, "release": release},
        "tasks": {"write_docs": write_docs, "ship": ship, "triage": triage},
        "persons": {"ann": ann, "bob": bob},
    }
