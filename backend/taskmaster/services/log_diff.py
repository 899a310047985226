"""Field-level diffing of project snapshots for the activity log."""

from __future__ import annotations

import datetime as dt
import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from taskmaster.models.enums import LogAction

# Allow-list, in display order. Bookkeeping columns (id, timestamps, archive
# flags, status_change_note) are never diffed.
TRACKED_FIELDS: tuple[str, ...] = (
    "project_title",
    "department",
    "status",
    "sub_status",
    "opd_focal",
    "percentage",
    "budget",
    "award_amount",
    "awarded_company",
    "savings_omr",
    "savings_percentage",
    "start_date",
    "completion_date",
    "date_of_receive_final_doc",
    "po_number",
    "pmo_number",
    "capex_opex",
    "area",
    "project_type",
    "drivers",
    "year",
    "brief_status",
    "note",
)


def normalize_value(value: Any) -> Any:
    """JSON-safe form of a snapshot value (what gets stored in `changes`)."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (dt.datetime, dt.date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    return value


def _comparable(value: Any) -> tuple[str, Any] | None:
    value = normalize_value(value)
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, (int, float)):
        try:
            return ("num", Decimal(str(value)))
        except InvalidOperation:
            return ("str", str(value))
    return ("str", str(value))


def values_equal(a: Any, b: Any) -> bool:
    """
    Equality used for diffing:
    - None, missing and "" are all "unset"
    - int/float/Decimal compare numerically
    - dates compare equal to their ISO string
    """
    return _comparable(a) == _comparable(b)


def compute_changes(
    previous: Mapping[str, Any],
    new: Mapping[str, Any],
    fields: tuple[str, ...] = TRACKED_FIELDS,
) -> dict[str, dict[str, Any]]:
    changes: dict[str, dict[str, Any]] = {}
    for name in fields:
        if name not in previous and name not in new:
            continue
        before = previous.get(name)
        after = new.get(name)
        if values_equal(before, after):
            continue
        changes[name] = {"from": normalize_value(before), "to": normalize_value(after)}
    return changes


def select_action(changes: Mapping[str, Any]) -> LogAction | None:
    if not changes:
        return None
    if len(changes) == 1:
        (only,) = changes
        if only == "status":
            return LogAction.STATUS_CHANGED
        if only == "sub_status":
            return LogAction.SUB_STATUS_CHANGED
    return LogAction.FIELDS_UPDATED


@dataclass(frozen=True)
class LogDiff:
    changes: dict[str, dict[str, Any]] = field(default_factory=dict)
    action: LogAction | None = None

    def __bool__(self) -> bool:
        return bool(self.changes)


def diff_snapshots(previous: Mapping[str, Any], new: Mapping[str, Any]) -> LogDiff:
    """An empty LogDiff means nothing trackable changed; callers must not log it."""
    changes = compute_changes(previous, new)
    return LogDiff(changes=changes, action=select_action(changes))
