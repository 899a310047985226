from __future__ import annotations

import datetime as dt
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, Enum, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from taskmaster.db.session import Base
from taskmaster.models.enums import ProjectStatus


class Project(Base):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    project_title: Mapped[str] = mapped_column(String(200), index=True)
    department: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    status: Mapped[ProjectStatus] = mapped_column(Enum(ProjectStatus), default=ProjectStatus.POSSIBLE, index=True)
    sub_status: Mapped[str | None] = mapped_column(String(120), nullable=True)
    opd_focal: Mapped[str | None] = mapped_column(String(120), nullable=True)  # owning planner
    percentage: Mapped[int] = mapped_column(Integer, default=0)  # completion, 0-100

    # Money in OMR
    budget: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    award_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    awarded_company: Mapped[str | None] = mapped_column(String(200), nullable=True)
    savings_omr: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    savings_percentage: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)

    start_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    completion_date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)
    date_of_receive_final_doc: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    po_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    pmo_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    capex_opex: Mapped[str | None] = mapped_column(String(16), nullable=True)  # CAPEX | OPEX
    area: Mapped[str | None] = mapped_column(String(120), nullable=True)
    project_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    drivers: Mapped[str | None] = mapped_column(String(200), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    brief_status: Mapped[str | None] = mapped_column(Text, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    status_change_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    status_change_date: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    archived_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
