"""Activity log of a single project."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from taskmaster.api.deps import require_auth
from taskmaster.db.session import get_db
from taskmaster.models.user import User
from taskmaster.schemas.project_log import LogEntryOut, NoteCreate
from taskmaster.services import activity_log
from taskmaster.services import projects as project_service
from taskmaster.services.log_format import summarize

router = APIRouter()


@router.get("/", response_model=list[LogEntryOut])
def list_project_logs(project_id: int, db: Session = Depends(get_db), _=Depends(require_auth)):
    # Records outlive their project, so no existence check here.
    records = activity_log.list_project_logs(db, project_id)
    return [LogEntryOut(**r.model_dump(), summary=summarize(r)) for r in records]


@router.post("/notes", response_model=LogEntryOut, status_code=201)
def add_note(project_id: int, payload: NoteCreate, db: Session = Depends(get_db), user: User = Depends(require_auth)):
    record = project_service.add_project_note(db, project_id=project_id, note=payload.note, user=user)
    return LogEntryOut(**record.model_dump(), summary=summarize(record))
