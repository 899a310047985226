"""init: users, projects, project_logs

Revision ID: 0001_init
Revises:
Create Date: 2026-10-17

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

# SQLAlchemy Enum columns store member names.
ENUMS = (
    ("userrole", "ADMIN", "USER"),
    ("projectstatus", "POSSIBLE", "SCOPING", "PROCUREMENT", "EXECUTION", "COMPLETED", "CLOSED"),
    ("logaction", "CREATED", "FIELDS_UPDATED", "STATUS_CHANGED", "SUB_STATUS_CHANGED", "NOTE_ADDED"),
)


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(name=name, create_type=False)


def upgrade() -> None:
    # ENUMs: create only if not exists (safe for re-run after partial deploy)
    for name, *values in ENUMS:
        vals = ", ".join(f"'{v}'" for v in values)
        op.execute(
            f"DO $$ BEGIN CREATE TYPE {name} AS ENUM ({vals}); "
            "EXCEPTION WHEN duplicate_object THEN NULL; END $$"
        )

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("display_name", sa.String(length=120), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", _enum("userrole"), nullable=False, server_default="USER"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("project_title", sa.String(length=200), nullable=False),
        sa.Column("department", sa.String(length=120), nullable=True),
        sa.Column("status", _enum("projectstatus"), nullable=False, server_default="POSSIBLE"),
        sa.Column("sub_status", sa.String(length=120), nullable=True),
        sa.Column("opd_focal", sa.String(length=120), nullable=True),
        sa.Column("percentage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("budget", sa.Numeric(14, 2), nullable=True),
        sa.Column("award_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("awarded_company", sa.String(length=200), nullable=True),
        sa.Column("savings_omr", sa.Numeric(14, 2), nullable=True),
        sa.Column("savings_percentage", sa.Numeric(6, 2), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("completion_date", sa.Date(), nullable=True),
        sa.Column("date_of_receive_final_doc", sa.Date(), nullable=True),
        sa.Column("po_number", sa.String(length=64), nullable=True),
        sa.Column("pmo_number", sa.String(length=64), nullable=True),
        sa.Column("capex_opex", sa.String(length=16), nullable=True),
        sa.Column("area", sa.String(length=120), nullable=True),
        sa.Column("project_type", sa.String(length=120), nullable=True),
        sa.Column("drivers", sa.String(length=200), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("brief_status", sa.Text(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("status_change_note", sa.Text(), nullable=True),
        sa.Column("status_change_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_archived", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_by", sa.String(length=64), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_projects_project_title", "projects", ["project_title"])
    op.create_index("ix_projects_department", "projects", ["department"])
    op.create_index("ix_projects_status", "projects", ["status"])
    op.create_index("ix_projects_is_archived", "projects", ["is_archived"])

    # No FK to projects: log records outlive the project they describe.
    op.create_table(
        "project_logs",
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("project_id", sa.String(length=64), nullable=False),
        sa.Column("project_title", sa.String(length=200), nullable=True),
        sa.Column("action", _enum("logaction"), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("changes", sa.JSON(), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("created_by_name", sa.String(length=120), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_project_logs_project_id", "project_logs", ["project_id"])
    op.create_index("ix_project_logs_action", "project_logs", ["action"])
    op.create_index("ix_project_logs_created_at", "project_logs", ["created_at"])


def downgrade() -> None:
    op.drop_table("project_logs")
    op.drop_table("projects")
    op.drop_table("users")
    for name, *_ in reversed(ENUMS):
        op.execute(f"DROP TYPE IF EXISTS {name}")
