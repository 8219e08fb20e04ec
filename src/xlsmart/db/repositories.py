from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from xlsmart.db.models import Employee, RoleMapping, StandardRole, TaskRun, UploadSession


class Repository:
    def __init__(self, session: Session):
        self.session = session

    # upload sessions

    def create_upload_session(
        self,
        *,
        session_name: str,
        file_names: list[str],
        raw_data: list[dict[str, Any]],
        total_rows: int,
        created_by: str,
        status: str = "analyzing",
    ) -> UploadSession:
        upload = UploadSession(
            session_name=session_name,
            file_names=file_names,
            raw_data=raw_data,
            total_rows=total_rows,
            created_by=created_by,
            status=status,
        )
        self.session.add(upload)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(upload)
        return upload

    def get_upload_session(self, session_id: int) -> UploadSession | None:
        return self.session.get(UploadSession, session_id)

    def list_upload_sessions(self, limit: int = 50) -> list[UploadSession]:
        statement = select(UploadSession).order_by(UploadSession.id.desc()).limit(limit)
        return list(self.session.scalars(statement).all())

    def update_upload_session(
        self,
        session_id: int,
        *,
        status: str | None = None,
        error: str | None = None,
        ai_analysis: dict[str, Any] | None = None,
    ) -> UploadSession:
        upload = self.session.get(UploadSession, session_id)
        if not upload:
            raise ValueError(f"upload session {session_id} not found")

        if status is not None:
            upload.status = status
        if error is not None:
            upload.error = error
        if ai_analysis is not None:
            upload.ai_analysis = ai_analysis

        self.session.commit()
        self.session.refresh(upload)
        return upload

    # standard roles

    def list_standard_roles(self, *, active_only: bool = True) -> list[StandardRole]:
        statement = select(StandardRole)
        if active_only:
            statement = statement.where(StandardRole.is_active.is_(True))
        statement = statement.order_by(StandardRole.role_title.asc(), StandardRole.id.asc())
        return list(self.session.scalars(statement).all())

    def get_standard_role(self, role_id: int) -> StandardRole | None:
        return self.session.get(StandardRole, role_id)

    def latest_role_version(self, role_title: str) -> int:
        statement = select(func.max(StandardRole.version)).where(
            func.lower(StandardRole.role_title) == role_title.strip().lower()
        )
        return self.session.scalar(statement) or 0

    def update_standard_role(self, role_id: int, values: dict[str, Any]) -> StandardRole:
        role = self.session.get(StandardRole, role_id)
        if not role:
            raise ValueError(f"standard role {role_id} not found")
        for key, value in values.items():
            setattr(role, key, value)
        self.session.commit()
        self.session.refresh(role)
        return role

    def count_session_roles(self, session_id: int) -> int:
        statement = select(func.count(StandardRole.id)).where(StandardRole.session_id == session_id)
        return self.session.scalar(statement) or 0

    # role mappings

    def list_role_mappings(self, *, catalog_id: int | None = None) -> list[RoleMapping]:
        statement = select(RoleMapping)
        if catalog_id is not None:
            statement = statement.where(RoleMapping.catalog_id == catalog_id)
        return list(self.session.scalars(statement.order_by(RoleMapping.id.asc())).all())

    def get_role_mapping(self, mapping_id: int) -> RoleMapping | None:
        return self.session.get(RoleMapping, mapping_id)

    def set_mapping_status(self, mapping_id: int, status: str, comments: str = "") -> RoleMapping:
        mapping = self.session.get(RoleMapping, mapping_id)
        if not mapping:
            raise ValueError(f"role mapping {mapping_id} not found")
        mapping.mapping_status = status
        if comments:
            mapping.review_comments = comments
        self.session.commit()
        self.session.refresh(mapping)
        return mapping

    def update_mapping_confidence(
        self,
        mapping_id: int,
        *,
        confidence: int,
        requires_manual_review: bool,
        source: str,
        status: str | None = None,
    ) -> None:
        values = {
            "mapping_confidence": confidence,
            "requires_manual_review": requires_manual_review,
            "confidence_source": source,
        }
        if status is not None:
            values["mapping_status"] = status
        self.session.execute(update(RoleMapping).where(RoleMapping.id == mapping_id).values(**values))
        self.session.commit()

    # employees

    def create_employee(self, values: dict[str, Any]) -> Employee:
        employee = Employee(**values)
        self.session.add(employee)
        self.session.commit()
        self.session.refresh(employee)
        return employee

    def get_employee(self, employee_id: int) -> Employee | None:
        return self.session.get(Employee, employee_id)

    def list_employees(self, *, unassigned_only: bool = False) -> list[Employee]:
        statement = select(Employee)
        if unassigned_only:
            statement = statement.where(Employee.standard_role_id.is_(None))
        statement = statement.order_by(Employee.created_at.desc(), Employee.id.desc())
        return list(self.session.scalars(statement).all())

    def list_employees_by_status(self, status: str) -> list[Employee]:
        statement = (
            select(Employee)
            .where(Employee.role_assignment_status == status)
            .order_by(Employee.id.asc())
        )
        return list(self.session.scalars(statement).all())

    def assign_employee_role(
        self,
        employee_id: int,
        *,
        role_id: int,
        status: str,
        notes: str | None,
        assigned_by: str | None = None,
        suggested: bool = False,
    ) -> Employee:
        employee = self.session.get(Employee, employee_id)
        if not employee:
            raise ValueError(f"employee {employee_id} not found")

        employee.standard_role_id = role_id
        employee.role_assignment_status = status
        employee.assignment_notes = notes
        if assigned_by is not None:
            employee.assigned_by = assigned_by
        if suggested:
            employee.ai_suggested_role_id = role_id

        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(employee)
        return employee

    def set_employee_status(self, employee_id: int, status: str) -> Employee:
        employee = self.session.get(Employee, employee_id)
        if not employee:
            raise ValueError(f"employee {employee_id} not found")
        employee.role_assignment_status = status
        self.session.commit()
        self.session.refresh(employee)
        return employee

    # task runs

    def create_task(self, *, kind: str, params: dict[str, Any], session_id: int | None = None) -> TaskRun:
        task = TaskRun(kind=kind, params=params, session_id=session_id, status="queued")
        self.session.add(task)
        self.session.commit()
        self.session.refresh(task)
        return task

    def get_task(self, task_id: int) -> TaskRun | None:
        return self.session.get(TaskRun, task_id)

    def update_task(
        self,
        task_id: int,
        *,
        status: str | None = None,
        progress: dict[str, Any] | None = None,
        result: dict[str, Any] | None = None,
        error: str | None = None,
        started: bool = False,
        completed: bool = False,
    ) -> TaskRun:
        task = self.session.get(TaskRun, task_id)
        if not task:
            raise ValueError(f"task {task_id} not found")

        if status is not None:
            task.status = status
        if progress is not None:
            task.progress = progress
        if result is not None:
            task.result = result
        if error is not None:
            task.error = error
        if started:
            task.started_at = datetime.now(UTC)
        if completed:
            task.completed_at = datetime.now(UTC)

        self.session.commit()
        self.session.refresh(task)
        return task

    # maintenance

    def clear_derived_tables(self, *, include_standard_roles: bool = False) -> None:
        self.session.execute(delete(RoleMapping))
        self.session.execute(
            update(Employee).values(
                standard_role_id=None,
                ai_suggested_role_id=None,
                role_assignment_status="pending",
                assigned_by=None,
                assignment_notes=None,
            )
        )
        self.session.execute(delete(TaskRun))
        if include_standard_roles:
            self.session.execute(delete(StandardRole))
        self.session.execute(delete(UploadSession))
        self.session.commit()

    def table_counts(self) -> dict[str, int]:
        counts = {}
        for model in (UploadSession, StandardRole, RoleMapping, TaskRun):
            counts[model.__tablename__] = self.session.scalar(select(func.count(model.id))) or 0
        return counts
