"""Pydantic payloads for creating and updating tracker entities.

Create models carry the mandatory fields of each entity. Update models make
every field optional; only the fields a caller actually supplied are written
(``model_dump(exclude_unset=True)``), so omitted fields are never nulled.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

COMPLETED_STATUS = "Completed"


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


def _required(value, field: str):
    if value is None:
        raise ValueError(f"{field} may be omitted but not set to null")
    return value


class PersonCreate(_Payload):
    name: str = Field(..., min_length=1)
    task_id: Optional[int] = None


class PersonUpdate(_Payload):
    name: Optional[str] = Field(None, min_length=1)
    task_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name_not_null(cls, v):
        return _required(v, "name")


class TaskCreate(_Payload):
    title: str = Field(..., min_length=1)
    assigned_to: Optional[int] = None
    related_channel: Optional[int] = None
    task_status: Optional[str] = None
    start_date: Optional[str] = None
    deadline: Optional[str] = None


class TaskUpdate(_Payload):
    title: Optional[str] = Field(None, min_length=1)
    assigned_to: Optional[int] = None
    related_channel: Optional[int] = None
    task_status: Optional[str] = None
    start_date: Optional[str] = None
    deadline: Optional[str] = None

    @field_validator("title")
    @classmethod
    def validate_title_not_null(cls, v):
        return _required(v, "title")


class ChannelCreate(_Payload):
    channel_name: str = Field(..., min_length=1)


class ChannelUpdate(_Payload):
    channel_name: Optional[str] = Field(None, min_length=1)

    @field_validator("channel_name")
    @classmethod
    def validate_channel_name_not_null(cls, v):
        return _required(v, "channel_name")


class ReminderCreate(_Payload):
    task_id: int = Field(..., description="Task the reminder belongs to")
    remainder_date: Optional[str] = Field(None, description="Reminder date, e.g. 2026-01-15")
    reminder_time: Optional[str] = Field(None, description="Reminder time, e.g. 09:30")


class ReminderUpdate(_Payload):
    task_id: Optional[int] = None
    remainder_date: Optional[str] = None
    reminder_time: Optional[str] = None

    @field_validator("task_id")
    @classmethod
    def validate_task_id_not_null(cls, v):
        return _required(v, "task_id")
