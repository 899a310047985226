"""Log record value types shared by the store accessor and the read side."""

from __future__ import annotations

import datetime as dt
import re
from decimal import Decimal
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskmaster.models.enums import LogAction
from taskmaster.schemas.common import as_utc

# A single before/after value. JSON storage flattens dates to ISO strings;
# LogRecord restores them for date fields so formatting can dispatch on type.
ChangeValue = Union[None, bool, int, float, Decimal, dt.datetime, dt.date, str]


_WORD_BREAK = re.compile(r"_|(?<=[a-z0-9])(?=[A-Z])")


def is_date_field(field: str | None) -> bool:
    """True when "date" is a whole word of a snake_case or camelCase name (not `updated_at`)."""
    if not field:
        return False
    return any(word.lower() == "date" for word in _WORD_BREAK.split(field))


def restore_date(value: Any) -> Any:
    if not isinstance(value, str) or not value:
        return value
    try:
        if len(value) == 10:
            return dt.date.fromisoformat(value)
        return dt.datetime.fromisoformat(value)
    except ValueError:
        return value


class FieldChange(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_: ChangeValue = Field(default=None, alias="from")
    to: ChangeValue = None


class LogRecord(BaseModel):
    """
    Immutable activity-log entry for one project mutation.

    `project_title` and `created_by_name` are point-in-time copies; nothing is
    dereferenced at read time. `id` and `created_at` are filled by append_log.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str | None = None
    project_id: str
    project_title: str | None = None
    action: LogAction
    description: str = ""
    changes: dict[str, FieldChange] = Field(default_factory=dict)
    note: str | None = None
    created_by: str = ""
    created_by_name: str = ""
    created_at: dt.datetime | None = None

    @field_validator("changes", mode="before")
    @classmethod
    def _restore_change_types(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v or {}
        restored = {}
        for field, change in v.items():
            if isinstance(change, dict) and is_date_field(field):
                change = {k: restore_date(val) for k, val in change.items()}
            restored[field] = change
        return restored

    @field_validator("created_at")
    @classmethod
    def _created_at_utc(cls, v: dt.datetime | None) -> dt.datetime | None:
        return as_utc(v) if v is not None else None

    @field_validator("note")
    @classmethod
    def _blank_note_is_none(cls, v: str | None) -> str | None:
        return v if v and v.strip() else None


class LogEntryOut(LogRecord):
    summary: str


class LogGroupOut(BaseModel):
    key: str
    logs: list[LogEntryOut]


class NoteCreate(BaseModel):
    note: str = Field(min_length=1, max_length=5000)
