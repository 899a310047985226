"""Activity log: append-only store accessor and the hooks project mutations call."""

from __future__ import annotations

import datetime as dt
import logging
import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from taskmaster.models.enums import DIFF_ACTIONS, LogAction
from taskmaster.models.project_log import ProjectLog
from taskmaster.schemas.project_log import FieldChange, LogRecord
from taskmaster.services.log_diff import diff_snapshots, normalize_value
from taskmaster.services.log_format import summarize

logger = logging.getLogger(__name__)


class ActivityLogError(RuntimeError):
    pass


class LogValidationError(ActivityLogError, ValueError):
    """Record rejected before any store call."""


class StoreUnavailable(ActivityLogError):
    """The store failed or timed out; distinct from an empty result."""


def _new_log_id() -> str:
    return uuid.uuid4().hex


def _changes_to_json(changes: Mapping[str, FieldChange]) -> dict[str, dict[str, Any]]:
    return {
        name: {"from": normalize_value(c.from_), "to": normalize_value(c.to)}
        for name, c in changes.items()
    }


def _validate(record: LogRecord) -> None:
    if not record.project_id:
        raise LogValidationError("project_id is required")
    if record.action in DIFF_ACTIONS and not record.changes:
        raise LogValidationError(f"{record.action.value} requires at least one change")
    if record.action == LogAction.NOTE_ADDED and not record.note:
        raise LogValidationError("note is required")


@retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    reraise=True,
)
def _write(db: Session, row: ProjectLog) -> None:
    try:
        db.add(row)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def append_log(db: Session, record: LogRecord) -> LogRecord:
    """
    Persist an immutable record, filling `id` and `created_at` when absent.

    Transient connection errors are retried (at-least-once). Records created
    within the same clock tick may sort in either order.
    """
    _validate(record)
    stored = record.model_copy(
        update={
            "id": record.id or _new_log_id(),
            "created_at": record.created_at or dt.datetime.now(dt.timezone.utc),
        }
    )
    row = ProjectLog(
        id=stored.id,
        project_id=stored.project_id,
        project_title=stored.project_title,
        action=stored.action,
        description=stored.description,
        changes=_changes_to_json(stored.changes),
        note=stored.note,
        created_by=stored.created_by,
        created_by_name=stored.created_by_name,
        created_at=stored.created_at,
    )
    try:
        _write(db, row)
    except SQLAlchemyError as e:
        logger.error("Activity log append failed project_id=%s action=%s: %s", stored.project_id, stored.action.value, e)
        raise StoreUnavailable("Failed to write activity log") from e

    logger.debug("Activity log %s appended project_id=%s action=%s", stored.id, stored.project_id, stored.action.value)
    return stored


def newest_first(records: Iterable[LogRecord]) -> list[LogRecord]:
    return sorted(records, key=lambda r: r.created_at, reverse=True)


def list_project_logs(db: Session, project_id: str | int) -> list[LogRecord]:
    """Newest first. An empty list means "no activity yet", not a failure."""
    try:
        rows = (
            db.query(ProjectLog)
            .filter(ProjectLog.project_id == str(project_id))
            .order_by(ProjectLog.created_at.desc())
            .all()
        )
    except SQLAlchemyError as e:
        logger.exception("Failed to load activity logs for project %s", project_id)
        raise StoreUnavailable("Failed to load activity logs") from e
    return newest_first(LogRecord.model_validate(r) for r in rows)


def list_all_logs(db: Session) -> list[LogRecord]:
    try:
        rows = db.query(ProjectLog).order_by(ProjectLog.created_at.desc()).all()
    except SQLAlchemyError as e:
        logger.exception("Failed to load activity logs")
        raise StoreUnavailable("Failed to load activity logs") from e
    return newest_first(LogRecord.model_validate(r) for r in rows)


def _require_identity(project_id: str | int | None, project_title: str | None) -> None:
    if project_id is None or str(project_id) == "":
        raise LogValidationError("project_id is required")
    if not project_title or not project_title.strip():
        raise LogValidationError("project_title is required")


def _draft(
    *,
    project_id: str | int,
    project_title: str,
    action: LogAction,
    actor_id: str,
    actor_name: str,
    changes: Mapping[str, Mapping[str, Any]] | None = None,
    note: str | None = None,
    at: dt.datetime | None = None,
) -> LogRecord:
    record = LogRecord(
        project_id=str(project_id),
        project_title=project_title,
        action=action,
        changes=dict(changes or {}),
        note=note,
        created_by=actor_id,
        created_by_name=actor_name,
        created_at=at,
    )
    # Description is fixed at write time, never recomputed.
    return record.model_copy(update={"description": summarize(record)})


def log_project_created(
    db: Session,
    *,
    project_id: str | int,
    project_title: str,
    actor_id: str,
    actor_name: str,
    at: dt.datetime | None = None,
) -> LogRecord:
    _require_identity(project_id, project_title)
    record = _draft(
        project_id=project_id,
        project_title=project_title,
        action=LogAction.CREATED,
        actor_id=actor_id,
        actor_name=actor_name,
        at=at,
    )
    return append_log(db, record)


def log_note_added(
    db: Session,
    *,
    project_id: str | int,
    project_title: str,
    note: str,
    actor_id: str,
    actor_name: str,
    at: dt.datetime | None = None,
) -> LogRecord:
    _require_identity(project_id, project_title)
    if not note or not note.strip():
        raise LogValidationError("note is required")
    record = _draft(
        project_id=project_id,
        project_title=project_title,
        action=LogAction.NOTE_ADDED,
        actor_id=actor_id,
        actor_name=actor_name,
        note=note.strip(),
        at=at,
    )
    return append_log(db, record)


def log_project_updated(
    db: Session,
    *,
    project_id: str | int,
    project_title: str,
    previous: Mapping[str, Any],
    new: Mapping[str, Any],
    actor_id: str,
    actor_name: str,
    note: str | None = None,
    at: dt.datetime | None = None,
) -> LogRecord | None:
    """
    Diff the snapshots and append one record when something trackable changed.

    Returns None for a no-op update. A note with no field changes is logged
    as NOTE_ADDED. `at` pins the record time; the store clock is used when omitted.
    """
    _require_identity(project_id, project_title)
    diff = diff_snapshots(previous, new)
    if not diff:
        if note and note.strip():
            return log_note_added(
                db,
                project_id=project_id,
                project_title=project_title,
                note=note,
                actor_id=actor_id,
                actor_name=actor_name,
                at=at,
            )
        return None

    record = _draft(
        project_id=project_id,
        project_title=project_title,
        action=diff.action,
        actor_id=actor_id,
        actor_name=actor_name,
        changes=diff.changes,
        note=note,
        at=at,
    )
    return append_log(db, record)
