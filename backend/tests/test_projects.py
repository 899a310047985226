from decimal import Decimal

import pytest
from fastapi import HTTPException

from taskmaster.models.enums import LogAction, ProjectStatus
from taskmaster.schemas.project import ProjectCreate, ProjectUpdate
from taskmaster.services import projects as project_service
from taskmaster.services.activity_log import StoreUnavailable, list_project_logs


def _create(db, user, **kw):
    kw.setdefault("project_title", "Runway Lighting")
    return project_service.create_project(db, ProjectCreate(**kw), user=user)


def test_create_project_logs_created(db, alice):
    result = _create(db, alice, budget=Decimal("25000"))
    assert result.project.status == ProjectStatus.POSSIBLE
    assert result.log is not None
    assert result.log.action == LogAction.CREATED
    assert result.log.project_id == str(result.project.id)
    assert result.log.created_by == str(alice.id)
    assert result.log.created_by_name == "Alice"
    assert result.log_failed is False


def test_update_status_logs_status_change(db, alice, bob):
    project = _create(db, alice).project
    result = project_service.update_project(
        db,
        project_id=project.id,
        payload=ProjectUpdate(status=ProjectStatus.SCOPING, status_change_note="Budget approved"),
        user=bob,
    )
    assert result.project.status == ProjectStatus.SCOPING
    assert result.project.status_change_note == "Budget approved"
    assert result.project.status_change_date is not None

    logs = list_project_logs(db, project.id)
    assert [r.action for r in logs] == [LogAction.STATUS_CHANGED, LogAction.CREATED]
    assert logs[0].changes["status"].from_ == "Possible"
    assert logs[0].changes["status"].to == "Scoping"
    assert logs[0].note == "Budget approved"
    assert logs[0].created_by_name == "Bob"


def test_resubmitting_unchanged_project_logs_nothing(db, alice):
    project = _create(db, alice, budget=Decimal("1000.00")).project
    payload = ProjectUpdate(project_title="Runway Lighting", budget=Decimal("1000"), note="")
    for _ in range(2):
        result = project_service.update_project(db, project_id=project.id, payload=payload, user=alice)
        assert result.log is None
        assert result.log_failed is False
    assert len(list_project_logs(db, project.id)) == 1


def test_multi_field_update(db, alice):
    project = _create(db, alice, budget=Decimal("1000")).project
    result = project_service.update_project(
        db,
        project_id=project.id,
        payload=ProjectUpdate(budget=Decimal("1500"), award_amount=Decimal("1200")),
        user=alice,
    )
    assert result.log.action == LogAction.FIELDS_UPDATED
    assert set(result.log.changes) == {"budget", "award_amount"}
    assert result.log.description == "2 fields updated"


def test_title_snapshot_survives_rename(db, alice):
    project = _create(db, alice, project_title="Old Title").project
    project_service.update_project(db, project_id=project.id, payload=ProjectUpdate(project_title="New Title"), user=alice)
    logs = list_project_logs(db, project.id)
    assert logs[0].project_title == "New Title"
    assert logs[1].project_title == "Old Title"


def test_log_failure_does_not_undo_project_change(db, alice, monkeypatch):
    project = _create(db, alice).project

    def unavailable(*_a, **_kw):
        raise StoreUnavailable("Failed to write activity log")

    monkeypatch.setattr(project_service, "log_project_updated", unavailable)
    result = project_service.update_project(
        db, project_id=project.id, payload=ProjectUpdate(percentage=50), user=alice
    )
    assert result.log_failed is True
    assert result.log is None
    assert project_service.get_project(db, project.id).percentage == 50


def test_add_note_propagates_store_failure(db, alice, monkeypatch):
    project = _create(db, alice).project

    def unavailable(*_a, **_kw):
        raise StoreUnavailable("Failed to write activity log")

    monkeypatch.setattr(project_service, "log_note_added", unavailable)
    with pytest.raises(StoreUnavailable):
        project_service.add_project_note(db, project_id=project.id, note="hello", user=alice)


def test_unknown_project_is_404(db, alice):
    with pytest.raises(HTTPException) as exc:
        project_service.update_project(db, project_id=999, payload=ProjectUpdate(percentage=1), user=alice)
    assert exc.value.status_code == 404


def test_archive_and_unarchive(db, alice):
    project = _create(db, alice).project
    project_service.archive_project(db, project_id=project.id, user=alice)
    assert project_service.list_projects(db) == []
    assert [p.id for p in project_service.list_projects(db, archived=True)] == [project.id]

    project_service.unarchive_project(db, project_id=project.id)
    assert [p.id for p in project_service.list_projects(db)] == [project.id]
    # Archive flags are bookkeeping, not tracked changes.
    assert len(list_project_logs(db, project.id)) == 1
