"""Activity log across all projects: filtered/grouped listing and CSV export."""

from __future__ import annotations

import datetime as dt

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from taskmaster.api.deps import require_auth
from taskmaster.db.session import get_db
from taskmaster.models.enums import LogAction
from taskmaster.schemas.project_log import LogEntryOut, LogGroupOut, LogRecord
from taskmaster.services import activity_log
from taskmaster.services.log_format import GroupMode, export_csv, filter_logs, group_logs, summarize

router = APIRouter()


def _filtered(
    db: Session,
    q: str | None,
    action: LogAction | None,
    user: str | None,
    on_date: dt.date | None,
) -> list[LogRecord]:
    records = activity_log.list_all_logs(db)
    return filter_logs(records, search_term=q, action=action, actor_name=user, on_date=on_date)


@router.get("/", response_model=list[LogGroupOut])
def list_logs(
    q: str | None = Query(default=None, max_length=200),
    action: LogAction | None = Query(default=None),
    user: str | None = Query(default=None),
    on_date: dt.date | None = Query(default=None),
    group_by: GroupMode = Query(default=GroupMode.DATE),
    db: Session = Depends(get_db),
    _=Depends(require_auth),
):
    records = _filtered(db, q, action, user, on_date)
    return [
        LogGroupOut(key=key, logs=[LogEntryOut(**r.model_dump(), summary=summarize(r)) for r in items])
        for key, items in group_logs(records, group_by).items()
    ]


@router.get("/export.csv")
def export_logs(
    q: str | None = Query(default=None, max_length=200),
    action: LogAction | None = Query(default=None),
    user: str | None = Query(default=None),
    on_date: dt.date | None = Query(default=None),
    db: Session = Depends(get_db),
    _=Depends(require_auth),
) -> Response:
    records = _filtered(db, q, action, user, on_date)
    filename = f"activity-logs-{dt.date.today().isoformat()}.csv"
    return Response(
        content=export_csv(records).encode("utf-8-sig"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
