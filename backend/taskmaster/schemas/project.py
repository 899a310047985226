from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from taskmaster.models.enums import ProjectStatus

# Every log record carries the title, so a blank one is rejected before the project is stored.
ProjectTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]


class ProjectBase(BaseModel):
    department: str | None = Field(default=None, max_length=120)
    sub_status: str | None = Field(default=None, max_length=120)
    opd_focal: str | None = Field(default=None, max_length=120)

    budget: Decimal | None = Field(default=None, ge=0)
    award_amount: Decimal | None = Field(default=None, ge=0)
    awarded_company: str | None = Field(default=None, max_length=200)
    savings_omr: Decimal | None = None
    savings_percentage: Decimal | None = None

    start_date: dt.date | None = None
    completion_date: dt.date | None = None
    date_of_receive_final_doc: dt.date | None = None

    po_number: str | None = Field(default=None, max_length=64)
    pmo_number: str | None = Field(default=None, max_length=64)
    capex_opex: str | None = Field(default=None, max_length=16)
    area: str | None = Field(default=None, max_length=120)
    project_type: str | None = Field(default=None, max_length=120)
    drivers: str | None = Field(default=None, max_length=200)
    year: int | None = Field(default=None, ge=1900, le=2200)
    brief_status: str | None = None
    note: str | None = None


class ProjectCreate(ProjectBase):
    project_title: ProjectTitle
    status: ProjectStatus = ProjectStatus.POSSIBLE
    percentage: int = Field(default=0, ge=0, le=100)


class ProjectUpdate(ProjectBase):
    """Partial update: only fields present in the request body are applied."""

    project_title: ProjectTitle | None = None
    status: ProjectStatus | None = None
    percentage: int | None = Field(default=None, ge=0, le=100)

    # Comment attached to the resulting log record (not a tracked field).
    status_change_note: str | None = None


class ProjectOut(ProjectBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_title: str
    status: ProjectStatus
    percentage: int

    status_change_note: str | None
    status_change_date: dt.datetime | None
    is_archived: bool
    archived_at: dt.datetime | None
    archived_by: str | None
    created_by: str | None
    created_at: dt.datetime | None
    updated_at: dt.datetime | None
