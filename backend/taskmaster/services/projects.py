from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Callable

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from taskmaster.models.enums import ProjectStatus
from taskmaster.models.project import Project
from taskmaster.models.user import User
from taskmaster.schemas.project import ProjectCreate, ProjectUpdate
from taskmaster.schemas.project_log import LogRecord
from taskmaster.services.activity_log import (
    ActivityLogError,
    log_note_added,
    log_project_created,
    log_project_updated,
)
from taskmaster.services.log_diff import TRACKED_FIELDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectMutation:
    project: Project
    log: LogRecord | None = None
    log_failed: bool = False


def project_snapshot(project: Project) -> dict[str, Any]:
    return {name: getattr(project, name) for name in TRACKED_FIELDS}


def _actor(user: User) -> dict[str, str]:
    return {"actor_id": str(user.id), "actor_name": user.actor_name}


def _record_activity(project: Project, hook: Callable[..., LogRecord | None], **kwargs) -> ProjectMutation:
    # The project change is already committed; a logging failure must not undo it.
    try:
        entry = hook(**kwargs)
    except ActivityLogError:
        logger.exception("Activity log gap: project %s was changed but not logged", project.id)
        return ProjectMutation(project=project, log=None, log_failed=True)
    return ProjectMutation(project=project, log=entry)


def get_project(db: Session, project_id: int) -> Project:
    p = db.query(Project).filter(Project.id == project_id).first()
    if not p:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return p


def list_projects(db: Session, *, archived: bool = False) -> list[Project]:
    return (
        db.query(Project)
        .filter(Project.is_archived == archived)
        .order_by(Project.updated_at.desc(), Project.id.desc())
        .all()
    )


def create_project(db: Session, payload: ProjectCreate, *, user: User) -> ProjectMutation:
    p = Project(**payload.model_dump(), created_by=str(user.id))
    db.add(p)
    db.commit()
    db.refresh(p)

    return _record_activity(
        p,
        log_project_created,
        db=db,
        project_id=p.id,
        project_title=p.project_title,
        **_actor(user),
    )


def update_project(db: Session, *, project_id: int, payload: ProjectUpdate, user: User) -> ProjectMutation:
    p = get_project(db, project_id)
    previous = project_snapshot(p)

    data = payload.model_dump(exclude_unset=True)
    note = data.pop("status_change_note", None)
    if "project_title" in data and data["project_title"] is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="project_title cannot be empty")
    if "status" in data and data["status"] is None:
        data["status"] = ProjectStatus.POSSIBLE
    if "percentage" in data and data["percentage"] is None:
        data["percentage"] = 0

    for name, value in data.items():
        setattr(p, name, value)
    if "status" in data and data["status"] != previous["status"]:
        p.status_change_date = dt.datetime.now(dt.timezone.utc)
        p.status_change_note = note
    db.commit()
    db.refresh(p)

    return _record_activity(
        p,
        log_project_updated,
        db=db,
        project_id=p.id,
        project_title=p.project_title,
        previous=previous,
        new=project_snapshot(p),
        note=note,
        **_actor(user),
    )


def add_project_note(db: Session, *, project_id: int, note: str, user: User) -> LogRecord:
    # The note is the mutation itself, so store failures propagate.
    p = get_project(db, project_id)
    return log_note_added(db, project_id=p.id, project_title=p.project_title, note=note, **_actor(user))


def archive_project(db: Session, *, project_id: int, user: User) -> Project:
    p = get_project(db, project_id)
    p.is_archived = True
    p.archived_at = dt.datetime.now(dt.timezone.utc)
    p.archived_by = str(user.id)
    db.commit()
    db.refresh(p)
    return p


def unarchive_project(db: Session, *, project_id: int) -> Project:
    p = get_project(db, project_id)
    p.is_archived = False
    p.archived_at = None
    p.archived_by = None
    db.commit()
    db.refresh(p)
    return p
