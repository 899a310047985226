"""Append-only activity log for projects."""

from __future__ import annotations

import datetime as dt

from sqlalchemy import DateTime, Enum, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from taskmaster.db.session import Base
from taskmaster.models.enums import LogAction


class ProjectLog(Base):
    __tablename__ = "project_logs"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    # No FK: records must outlive the project they describe.
    project_id: Mapped[str] = mapped_column(String(64), index=True)
    project_title: Mapped[str | None] = mapped_column(String(200), nullable=True)

    action: Mapped[LogAction] = mapped_column(Enum(LogAction), index=True)
    description: Mapped[str] = mapped_column(String(500))
    changes: Mapped[dict] = mapped_column(JSON, default=dict)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Denormalized actor snapshot (display name may change later).
    created_by: Mapped[str] = mapped_column(String(64), default="")
    created_by_name: Mapped[str] = mapped_column(String(120), default="")

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), index=True)
