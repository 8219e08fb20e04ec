from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from xlsmart.db.base import Base, TimestampMixin


class UploadSession(TimestampMixin, Base):
    __tablename__ = "upload_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    session_name: Mapped[str] = mapped_column(String(500), nullable=False)
    file_names: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    raw_data: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    total_rows: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[str] = mapped_column(String(40), default="uploading", nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    error: Mapped[str] = mapped_column(Text, default="", nullable=False)
    ai_analysis: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)


class StandardRole(TimestampMixin, Base):
    __tablename__ = "standard_roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    role_title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    job_family: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    role_level: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    role_category: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    department: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    standard_description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    core_responsibilities: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    required_skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    experience_range_min: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    experience_range_max: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), default="system", nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    session_id: Mapped[int | None] = mapped_column(
        ForeignKey("upload_sessions.id", ondelete="SET NULL"), nullable=True, index=True
    )


class RoleMapping(TimestampMixin, Base):
    __tablename__ = "role_mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    original_role_title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    original_department: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    original_level: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    standardized_role_title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    standardized_department: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    standardized_level: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    job_family: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    standard_role_id: Mapped[int] = mapped_column(
        ForeignKey("standard_roles.id", ondelete="CASCADE"), index=True, nullable=False
    )
    mapping_confidence: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    confidence_source: Mapped[str] = mapped_column(String(20), default="model", nullable=False)
    mapping_status: Mapped[str] = mapped_column(String(40), default="auto_mapped", nullable=False)
    requires_manual_review: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    review_comments: Mapped[str] = mapped_column(Text, default="", nullable=False)
    catalog_id: Mapped[int | None] = mapped_column(
        ForeignKey("upload_sessions.id", ondelete="SET NULL"), nullable=True, index=True
    )


class Employee(TimestampMixin, Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    employee_number: Mapped[str] = mapped_column(String(80), default="", nullable=False)
    first_name: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    email: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    current_position: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    current_department: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    current_level: Mapped[str] = mapped_column(String(120), default="", nullable=False)
    skills: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    standard_role_id: Mapped[int | None] = mapped_column(
        ForeignKey("standard_roles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    ai_suggested_role_id: Mapped[int | None] = mapped_column(
        ForeignKey("standard_roles.id", ondelete="SET NULL"), nullable=True
    )
    role_assignment_status: Mapped[str] = mapped_column(String(40), default="pending", nullable=False)
    assignment_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    assigned_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class TaskRun(TimestampMixin, Base):
    __tablename__ = "task_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kind: Mapped[str] = mapped_column(String(40), nullable=False)
    status: Mapped[str] = mapped_column(String(40), default="queued", nullable=False)
    session_id: Mapped[int | None] = mapped_column(
        ForeignKey("upload_sessions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    params: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    progress: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    result: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    error: Mapped[str] = mapped_column(Text, default="", nullable=False)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
