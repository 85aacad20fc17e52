# tests/test_cli.py

from __future__ import annotations

from pathlib import Path

import pytest
from loguru import logger
from typer.testing import CliRunner

from project_tracker.cli import app

runner = CliRunner()


@pytest.fixture()
def env(tmp_path: Path) -> dict:
    return {
        "PROJECT_TRACKER__DATABASE_PATH": str(tmp_path / "tracker.db"),
        "PROJECT_TRACKER__APP_DATA_DIR": str(tmp_path / "data"),
    }


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    # the CLI points loguru at the runner's captured stderr
    logger.remove()


def invoke(env: dict, *args: str):
    return runner.invoke(app, list(args), env=env)


def test_init_db_creates_database_file(env, tmp_path) -> None:
    result = invoke(env, "init-db")

    assert result.exit_code == 0, result.output
    assert (tmp_path / "tracker.db").exists()


def test_add_then_list_person(env) -> None:
    assert invoke(env, "person", "add", "Ann").exit_code == 0
    assert invoke(env, "person", "add", "Bob").exit_code == 0

    result = invoke(env, "person", "list", "--desc")

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0].split()[:2] == ["id", "Name"]
    assert lines[2].split()[1] == "Bob"
    assert lines[3].split()[1] == "Ann"


def test_active_only_hides_people_without_task(env) -> None:
    invoke(env, "task", "add", "Write docs")
    invoke(env, "person", "add", "Ann", "--task-id", "1")
    invoke(env, "person", "add", "Bob")

    result = invoke(env, "person", "list", "--active-only")

    assert result.exit_code == 0, result.output
    assert "Ann" in result.stdout
    assert "Bob" not in result.stdout


def test_removing_missing_row_exits_with_error(env) -> None:
    result = invoke(env, "channel", "remove", "42")

    assert result.exit_code == 1
    assert "Channel 42 not found" in result.output


def test_update_without_fields_exits_with_error(env) -> None:
    invoke(env, "person", "add", "Ann")

    result = invoke(env, "person", "update", "1")

    assert result.exit_code == 1
    assert "No fields to update" in result.output


def test_reminder_for_unknown_task_rejected(env) -> None:
    result = invoke(env, "reminder", "add", "7", "--date", "2026-01-15")

    assert result.exit_code == 1
    assert "Error:" in result.output


def test_complete_and_purge_tasks(env) -> None:
    invoke(env, "task", "add", "Ship v1", "--status", "In Progress")
    invoke(env, "reminder", "add", "1", "--date", "2026-01-15", "--time", "09:30")

    completed = invoke(env, "task", "complete", "1")
    assert completed.exit_code == 0, completed.output
    assert "Completed" in completed.stdout

    purged = invoke(env, "task", "purge-completed")
    assert purged.exit_code == 0, purged.output
    assert "No rows." in purged.stdout
    assert "No rows." in invoke(env, "reminder", "list").stdout


def test_channel_rename(env) -> None:
    invoke(env, "channel", "add", "dcos")

    result = invoke(env, "channel", "rename", "1", "docs")

    assert result.exit_code == 0, result.output
    assert "docs" in result.stdout
    assert "dcos" not in result.stdout


def test_task_list_rejects_unknown_sort_column(env) -> None:
    result = invoke(env, "task", "list", "--sort-by", "priority")

    assert result.exit_code == 1
    assert "Cannot sort tasks" in result.output
