"""Presentation helpers for activity logs: labels, values, summaries, filters, grouping, CSV."""

from __future__ import annotations

import csv
import datetime as dt
import enum
import io
import re
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from zoneinfo import ZoneInfo

from taskmaster.core.config import settings
from taskmaster.models.enums import LogAction
from taskmaster.schemas.project_log import LogRecord, is_date_field

PLACEHOLDER = "—"
DATE_FORMAT = "%d %b %Y"  # 01 May 2024
CSV_HEADER = ("Date", "Time", "User", "Action", "Summary", "Project", "Details")

FIELD_LABELS = {
    "project_title": "Project Title",
    "opd_focal": "OPD Focal",
    "capex_opex": "CAPEX/OPEX",
    "sub_status": "Sub-Status",
    "award_amount": "Award Amount",
    "awarded_company": "Awarded Company",
    "completion_date": "Completion Date",
    "start_date": "Start Date",
    "po_number": "PO Number",
    "pmo_number": "PMO Number",
    "savings_omr": "Savings (OMR)",
    "savings_percentage": "Savings %",
    "date_of_receive_final_doc": "Final Document Date",
}

_MONEY_MARKERS = ("amount", "budget", "savings")


class GroupMode(str, enum.Enum):
    NONE = "none"
    DATE = "date"
    PROJECT = "project"


def display_tz(tz: dt.tzinfo | None = None) -> dt.tzinfo:
    return tz or ZoneInfo(settings.display_timezone)


def local_date(moment: dt.datetime, tz: dt.tzinfo | None = None) -> dt.date:
    return moment.astimezone(display_tz(tz)).date()


def format_field_name(field: str) -> str:
    if field in FIELD_LABELS:
        return FIELD_LABELS[field]
    words = re.sub(r"([A-Z])", r" \1", field).replace("_", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


def _as_number(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        num = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return num if num.is_finite() else None


def _as_date(value: Any) -> dt.date | None:
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.datetime.fromisoformat(value).date()
        except ValueError:
            try:
                return dt.date.fromisoformat(value[:10])
            except ValueError:
                return None
    return None


def _plain_number(num: Decimal) -> str:
    return format(num.normalize(), "f")


def _money(num: Decimal, currency: str) -> str:
    text = f"{num.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,.2f}"
    return f"{currency} {text.rstrip('0').rstrip('.')}"


def format_value(value: Any, field: str | None = None, *, currency: str | None = None) -> str:
    if value is None or (isinstance(value, str) and value == ""):
        return PLACEHOLDER

    name = (field or "").lower()
    if is_date_field(field):
        d = _as_date(value)
        return d.strftime(DATE_FORMAT) if d else str(value)

    if isinstance(value, bool):
        return "Yes" if value else "No"

    # Percentage first: savings_percentage is a percentage, not money.
    if "percentage" in name:
        num = _as_number(value)
        if num is not None:
            return f"{_plain_number(num)}%"

    if any(marker in name for marker in _MONEY_MARKERS):
        num = _as_number(value)
        if num is not None:
            return _money(num, currency or settings.currency_code)

    if isinstance(value, enum.Enum):
        return str(value.value)
    return str(value)


def _raw(value: Any) -> str:
    return "" if value is None else str(value)


def summarize(record: LogRecord) -> str:
    """One-line human summary; also used as the stored description at write time."""
    changes = record.changes or {}

    if record.action == LogAction.CREATED:
        return f'New project "{record.project_title or "Untitled"}" was created'

    if record.action == LogAction.NOTE_ADDED:
        return "Note added to project"

    if record.action == LogAction.STATUS_CHANGED and "status" in changes:
        change = changes["status"]
        return f'Status changed from "{_raw(change.from_)}" to "{_raw(change.to)}"'

    if record.action == LogAction.SUB_STATUS_CHANGED and "sub_status" in changes:
        return f'Sub-status updated to "{_raw(changes["sub_status"].to)}"'

    if record.action == LogAction.FIELDS_UPDATED:
        if len(changes) == 1:
            (field,) = changes
            return f"{format_field_name(field)} updated"
        if len(changes) > 1:
            return f"{len(changes)} fields updated"

    return record.description or "Project updated"


def filter_logs(
    records: Iterable[LogRecord],
    *,
    search_term: str | None = None,
    action: LogAction | str | None = None,
    actor_name: str | None = None,
    on_date: dt.date | None = None,
    tz: dt.tzinfo | None = None,
) -> list[LogRecord]:
    """All given predicates must hold; omitted ones do not constrain."""
    term = (search_term or "").strip().lower()
    wanted_action = LogAction(action) if action else None
    zone = display_tz(tz) if on_date else None

    out = []
    for r in records:
        if term:
            haystack = (summarize(r), r.description, r.created_by_name, r.project_title or "")
            if not any(term in h.lower() for h in haystack):
                continue
        if wanted_action and r.action != wanted_action:
            continue
        if actor_name and r.created_by_name != actor_name:
            continue
        if on_date and (r.created_at is None or local_date(r.created_at, zone) != on_date):
            continue
        out.append(r)
    return out


def group_logs(
    records: Iterable[LogRecord],
    mode: GroupMode | str = GroupMode.DATE,
    *,
    now: dt.datetime | None = None,
    tz: dt.tzinfo | None = None,
) -> dict[str, list[LogRecord]]:
    """
    Stable partition of `records` into display buckets.

    Bucket order is first appearance; records keep their input order inside a
    bucket (input is expected newest-first from the store).
    - none: a single "All Logs" bucket
    - date: "Today", "Yesterday", or "DD Mon YYYY" relative to `now`
    - project: project title at event time, "Unknown Project" when missing
    """
    mode = GroupMode(mode)
    records = list(records)
    if mode == GroupMode.NONE:
        return {"All Logs": records}

    groups: dict[str, list[LogRecord]] = {}
    if mode == GroupMode.PROJECT:
        for r in records:
            groups.setdefault(r.project_title or "Unknown Project", []).append(r)
        return groups

    zone = display_tz(tz)
    today = (now or dt.datetime.now(dt.timezone.utc)).astimezone(zone).date()
    yesterday = today - dt.timedelta(days=1)
    for r in records:
        day = local_date(r.created_at, zone) if r.created_at else None
        if day == today:
            key = "Today"
        elif day == yesterday:
            key = "Yesterday"
        elif day is None:
            key = "Unknown Date"
        else:
            key = day.strftime(DATE_FORMAT)
        groups.setdefault(key, []).append(r)
    return groups


def format_changes(record: LogRecord, *, currency: str | None = None) -> str:
    return "; ".join(
        f"{format_field_name(field)}: "
        f"{format_value(change.from_, field, currency=currency)} → {format_value(change.to, field, currency=currency)}"
        for field, change in (record.changes or {}).items()
    )


def export_csv(records: Iterable[LogRecord], *, tz: dt.tzinfo | None = None, currency: str | None = None) -> str:
    zone = display_tz(tz)
    buf = io.StringIO()
    w = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    w.writerow(CSV_HEADER)
    for r in records:
        local = r.created_at.astimezone(zone) if r.created_at else None
        w.writerow(
            [
                local.strftime("%Y-%m-%d") if local else "",
                local.strftime("%H:%M:%S") if local else "",
                r.created_by_name,
                r.action.value,
                summarize(r),
                r.project_title or "",
                format_changes(r, currency=currency),
            ]
        )
    return buf.getvalue()
