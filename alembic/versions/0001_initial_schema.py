"""Role standardization schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "upload_sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_name", sa.String(500), nullable=False),
        sa.Column("file_names", sa.JSON(), nullable=False),
        sa.Column("raw_data", sa.JSON(), nullable=False),
        sa.Column("total_rows", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("error", sa.Text(), nullable=False),
        sa.Column("ai_analysis", sa.JSON(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "standard_roles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("role_title", sa.String(255), nullable=False),
        sa.Column("job_family", sa.String(255), nullable=False),
        sa.Column("role_level", sa.String(120), nullable=False),
        sa.Column("role_category", sa.String(120), nullable=False),
        sa.Column("department", sa.String(255), nullable=False),
        sa.Column("standard_description", sa.Text(), nullable=False),
        sa.Column("core_responsibilities", sa.JSON(), nullable=False),
        sa.Column("required_skills", sa.JSON(), nullable=False),
        sa.Column("experience_range_min", sa.Integer(), nullable=False),
        sa.Column("experience_range_max", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column(
            "session_id",
            sa.Integer(),
            sa.ForeignKey("upload_sessions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_standard_roles_role_title", "standard_roles", ["role_title"])
    op.create_index("ix_standard_roles_session_id", "standard_roles", ["session_id"])

    op.create_table(
        "role_mappings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("original_role_title", sa.String(255), nullable=False),
        sa.Column("original_department", sa.String(255), nullable=False),
        sa.Column("original_level", sa.String(120), nullable=False),
        sa.Column("standardized_role_title", sa.String(255), nullable=False),
        sa.Column("standardized_department", sa.String(255), nullable=False),
        sa.Column("standardized_level", sa.String(120), nullable=False),
        sa.Column("job_family", sa.String(255), nullable=False),
        sa.Column(
            "standard_role_id",
            sa.Integer(),
            sa.ForeignKey("standard_roles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("mapping_confidence", sa.Integer(), nullable=False),
        sa.Column("confidence_source", sa.String(20), nullable=False),
        sa.Column("mapping_status", sa.String(40), nullable=False),
        sa.Column("requires_manual_review", sa.Boolean(), nullable=False),
        sa.Column("review_comments", sa.Text(), nullable=False),
        sa.Column(
            "catalog_id",
            sa.Integer(),
            sa.ForeignKey("upload_sessions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )
    op.create_index("ix_role_mappings_standard_role_id", "role_mappings", ["standard_role_id"])
    op.create_index("ix_role_mappings_catalog_id", "role_mappings", ["catalog_id"])

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_number", sa.String(80), nullable=False),
        sa.Column("first_name", sa.String(120), nullable=False),
        sa.Column("last_name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("current_position", sa.String(255), nullable=False),
        sa.Column("current_department", sa.String(255), nullable=False),
        sa.Column("current_level", sa.String(120), nullable=False),
        sa.Column("skills", sa.JSON(), nullable=False),
        sa.Column(
            "standard_role_id",
            sa.Integer(),
            sa.ForeignKey("standard_roles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "ai_suggested_role_id",
            sa.Integer(),
            sa.ForeignKey("standard_roles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("role_assignment_status", sa.String(40), nullable=False),
        sa.Column("assignment_notes", sa.Text(), nullable=True),
        sa.Column("assigned_by", sa.String(255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_employees_standard_role_id", "employees", ["standard_role_id"])

    op.create_table(
        "task_runs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("kind", sa.String(40), nullable=False),
        sa.Column("status", sa.String(40), nullable=False),
        sa.Column(
            "session_id",
            sa.Integer(),
            sa.ForeignKey("upload_sessions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("params", sa.JSON(), nullable=False),
        sa.Column("progress", sa.JSON(), nullable=False),
        sa.Column("result", sa.JSON(), nullable=False),
        sa.Column("error", sa.Text(), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_task_runs_session_id", "task_runs", ["session_id"])


def downgrade() -> None:
    op.drop_index("ix_task_runs_session_id", table_name="task_runs")
    op.drop_table("task_runs")
    op.drop_index("ix_employees_standard_role_id", table_name="employees")
    op.drop_table("employees")
    op.drop_index("ix_role_mappings_catalog_id", table_name="role_mappings")
    op.drop_index("ix_role_mappings_standard_role_id", table_name="role_mappings")
    op.drop_table("role_mappings")
    op.drop_index("ix_standard_roles_session_id", table_name="standard_roles")
    op.drop_index("ix_standard_roles_role_title", table_name="standard_roles")
    op.drop_table("standard_roles")
    op.drop_table("upload_sessions")
