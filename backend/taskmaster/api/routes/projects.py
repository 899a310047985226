from __future__ import annotations

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from taskmaster.api.deps import require_auth
from taskmaster.db.session import get_db
from taskmaster.models.user import User
from taskmaster.schemas.project import ProjectCreate, ProjectOut, ProjectUpdate
from taskmaster.services import projects as project_service
from taskmaster.services.projects import ProjectMutation

router = APIRouter()

ACTIVITY_LOG_HEADER = "X-Activity-Log"


def _mutation_out(result: ProjectMutation, response: Response) -> ProjectOut:
    if result.log_failed:
        response.headers[ACTIVITY_LOG_HEADER] = "failed"
    elif result.log is not None:
        response.headers[ACTIVITY_LOG_HEADER] = result.log.id or ""
    return ProjectOut.model_validate(result.project)


@router.get("/", response_model=list[ProjectOut])
def list_projects(db: Session = Depends(get_db), _=Depends(require_auth)):
    return project_service.list_projects(db)


@router.get("/archived", response_model=list[ProjectOut])
def list_archived_projects(db: Session = Depends(get_db), _=Depends(require_auth)):
    return project_service.list_projects(db, archived=True)


@router.get("/{project_id}", response_model=ProjectOut)
def get_project(project_id: int, db: Session = Depends(get_db), _=Depends(require_auth)):
    return project_service.get_project(db, project_id)


@router.post("/", response_model=ProjectOut, status_code=201)
def create_project(
    payload: ProjectCreate, response: Response, db: Session = Depends(get_db), user: User = Depends(require_auth)
):
    result = project_service.create_project(db, payload, user=user)
    return _mutation_out(result, response)


@router.patch("/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
):
    result = project_service.update_project(db, project_id=project_id, payload=payload, user=user)
    return _mutation_out(result, response)


@router.post("/{project_id}/archive", response_model=ProjectOut)
def archive_project(project_id: int, db: Session = Depends(get_db), user: User = Depends(require_auth)):
    return project_service.archive_project(db, project_id=project_id, user=user)


@router.delete("/{project_id}/archive", response_model=ProjectOut)
def unarchive_project(project_id: int, db: Session = Depends(get_db), _=Depends(require_auth)):
    return project_service.unarchive_project(db, project_id=project_id)
