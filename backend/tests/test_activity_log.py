import datetime as dt

import pytest
from sqlalchemy.exc import OperationalError

from taskmaster.models.enums import LogAction
from taskmaster.models.project_log import ProjectLog
from taskmaster.schemas.project_log import LogRecord
from taskmaster.services import activity_log
from taskmaster.services.activity_log import (
    LogValidationError,
    StoreUnavailable,
    append_log,
    list_all_logs,
    list_project_logs,
    log_note_added,
    log_project_created,
    log_project_updated,
)

UTC = dt.timezone.utc


def _record(project_id="P1", created_at=None, **kw):
    kw.setdefault("action", LogAction.CREATED)
    return LogRecord(project_id=project_id, project_title="Runway Lighting", created_at=created_at, **kw)


def test_append_assigns_id_and_created_at(db):
    stored = append_log(db, _record())
    assert stored.id
    assert stored.created_at is not None
    assert stored.created_at.tzinfo is not None
    assert db.query(ProjectLog).count() == 1


def test_append_keeps_given_id_and_timestamp(db):
    at = dt.datetime(2024, 5, 1, 9, 0, tzinfo=UTC)
    stored = append_log(db, _record(id="fixed-id", created_at=at))
    assert stored.id == "fixed-id"
    assert list_project_logs(db, "P1")[0].created_at == at


def test_list_by_entity_newest_first(db):
    t1 = dt.datetime(2024, 5, 1, 8, 0, tzinfo=UTC)
    t2 = t1 + dt.timedelta(minutes=5)
    t3 = t2 + dt.timedelta(minutes=5)
    for t in (t2, t1, t3):
        append_log(db, _record(created_at=t))
    append_log(db, _record(project_id="P2", created_at=t3 + dt.timedelta(hours=1)))

    logs = list_project_logs(db, "P1")
    assert [r.created_at for r in logs] == [t3, t2, t1]
    assert len(list_all_logs(db)) == 4
    assert list_all_logs(db)[0].project_id == "P2"


def test_list_by_entity_without_records_is_empty(db):
    assert list_project_logs(db, "nope") == []


def test_changes_round_trip_with_typed_dates(db):
    log_project_updated(
        db,
        project_id="P1",
        project_title="Runway Lighting",
        previous={"start_date": None},
        new={"start_date": dt.date(2024, 6, 1)},
        actor_id="1",
        actor_name="Alice",
    )
    (record,) = list_project_logs(db, "P1")
    assert record.changes["start_date"].from_ is None
    assert record.changes["start_date"].to == dt.date(2024, 6, 1)


def test_only_date_named_fields_are_restored_as_dates():
    record = LogRecord(
        project_id="P1",
        action=LogAction.FIELDS_UPDATED,
        changes={
            "completion_date": {"from": None, "to": "2024-12-31"},
            "last_updated_by": {"from": "2024-05-01", "to": "2024-05-02"},
        },
    )
    assert record.changes["completion_date"].to == dt.date(2024, 12, 31)
    assert record.changes["last_updated_by"].to == "2024-05-02"


def test_unchanged_update_appends_nothing(db):
    snap = {"project_title": "Runway Lighting", "status": "Scoping", "note": None}
    for _ in range(2):
        result = log_project_updated(
            db,
            project_id="P1",
            project_title="Runway Lighting",
            previous=snap,
            new={**snap, "note": ""},
            actor_id="1",
            actor_name="Alice",
        )
        assert result is None
    assert list_project_logs(db, "P1") == []


def test_update_with_note_only_logs_note_added(db):
    snap = {"status": "Scoping"}
    rec = log_project_updated(
        db,
        project_id="P1",
        project_title="Runway Lighting",
        previous=snap,
        new=snap,
        actor_id="1",
        actor_name="Alice",
        note="Waiting on vendor quotes",
    )
    assert rec.action == LogAction.NOTE_ADDED
    assert rec.note == "Waiting on vendor quotes"
    assert rec.changes == {}


def test_status_change_carries_note_and_description(db):
    rec = log_project_updated(
        db,
        project_id="P1",
        project_title="Runway Lighting",
        previous={"status": "Possible"},
        new={"status": "Scoping"},
        actor_id="2",
        actor_name="Bob",
        note="Kick-off approved",
    )
    assert rec.action == LogAction.STATUS_CHANGED
    assert rec.description == 'Status changed from "Possible" to "Scoping"'
    assert rec.note == "Kick-off approved"


def test_end_to_end_create_then_status_change(db):
    t0 = dt.datetime(2024, 5, 1, 9, 0, tzinfo=dt.timezone.utc)
    created = log_project_created(
        db, project_id="P1", project_title="Runway Lighting", actor_id="1", actor_name="Alice", at=t0
    )
    changed = log_project_updated(
        db,
        project_id="P1",
        project_title="Runway Lighting",
        previous={"status": "Possible"},
        new={"status": "Scoping"},
        actor_id="2",
        actor_name="Bob",
        at=t0 + dt.timedelta(seconds=1),
    )
    assert created.action == LogAction.CREATED
    assert created.changes == {}
    assert created.created_by_name == "Alice"
    assert created.created_at == t0

    logs = list_project_logs(db, "P1")
    assert [r.id for r in logs] == [changed.id, created.id]
    assert logs[0].action == LogAction.STATUS_CHANGED
    assert logs[0].created_by_name == "Bob"
    assert logs[0].changes["status"].from_ == "Possible"
    assert logs[0].changes["status"].to == "Scoping"


def test_missing_identity_is_rejected_before_store(db):
    with pytest.raises(LogValidationError):
        log_project_created(db, project_id="P1", project_title="  ", actor_id="1", actor_name="Alice")
    with pytest.raises(LogValidationError):
        log_project_created(db, project_id="", project_title="Runway", actor_id="1", actor_name="Alice")
    with pytest.raises(LogValidationError):
        log_note_added(db, project_id="P1", project_title="Runway", note=" ", actor_id="1", actor_name="Alice")
    assert db.query(ProjectLog).count() == 0


def test_diff_action_without_changes_is_rejected(db):
    with pytest.raises(LogValidationError):
        append_log(db, _record(action=LogAction.STATUS_CHANGED))


def test_append_failure_raises_store_unavailable(db, monkeypatch):
    def boom():
        raise OperationalError("INSERT", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "commit", boom)
    monkeypatch.setattr(activity_log._write.retry, "sleep", lambda _s: None)
    with pytest.raises(StoreUnavailable):
        append_log(db, _record())


def test_append_retries_transient_errors(db, monkeypatch):
    real_commit = db.commit
    calls = {"n": 0}

    def flaky():
        calls["n"] += 1
        if calls["n"] == 1:
            raise OperationalError("INSERT", {}, Exception("server closed the connection"))
        real_commit()

    monkeypatch.setattr(db, "commit", flaky)
    monkeypatch.setattr(activity_log._write.retry, "sleep", lambda _s: None)
    stored = append_log(db, _record())
    assert calls["n"] == 2
    monkeypatch.setattr(db, "commit", real_commit)
    assert [r.id for r in list_project_logs(db, "P1")] == [stored.id]


def test_query_failure_raises_store_unavailable(db, monkeypatch):
    def broken_query(*_a, **_kw):
        raise OperationalError("SELECT", {}, Exception("timeout"))

    monkeypatch.setattr(db, "query", broken_query)
    with pytest.raises(StoreUnavailable):
        list_project_logs(db, "P1")
    with pytest.raises(StoreUnavailable):
        list_all_logs(db)
