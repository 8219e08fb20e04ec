from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from xlsmart.config import Settings
from xlsmart.db.models import Employee
from xlsmart.db.repositories import Repository
from xlsmart.errors import InputError, NotFoundError
from xlsmart.types import AssignmentDetail, BulkAssignmentResult

logger = logging.getLogger(__name__)

TITLE_WEIGHT = 0.4
SKILL_WEIGHT = 0.3
DEPARTMENT_WEIGHT = 0.2
JOB_FAMILY_WEIGHT = 0.1

FALLBACK_NOTE = "AI bulk assignment: fallback, no matching signal"

ProgressCallback = Callable[[int, int], None]


class RoleLike(Protocol):
    role_title: str
    department: str
    job_family: str


class EmployeeLike(Protocol):
    current_position: str
    current_department: str
    skills: Any


def _norm(value: Any) -> str:
    return str(value or "").strip().lower()


def score_role(employee: EmployeeLike, role: RoleLike) -> float:
    title = _norm(role.role_title)
    department = _norm(role.department)
    job_family = _norm(role.job_family)
    position = _norm(employee.current_position)
    employee_department = _norm(employee.current_department)

    score = 0.0
    if position and title and (position in title or title in position):
        score += TITLE_WEIGHT

    skills = employee.skills if isinstance(employee.skills, list) else []
    for skill in (_norm(item) for item in skills):
        if not skill:
            continue
        if (title and (skill in title or title in skill)) or (department and skill in department):
            score += SKILL_WEIGHT
            break

    if department and employee_department and department == employee_department:
        score += DEPARTMENT_WEIGHT

    if job_family and employee_department and employee_department in job_family:
        score += JOB_FAMILY_WEIGHT

    return round(score, 4)


def pick_best_role(employee: EmployeeLike, roles: Sequence[RoleLike]) -> tuple[Any, float, bool]:
    """Return (role, score, is_fallback).

    Strictly higher scores win, so ties keep the first candidate seen. With no
    signal at all the first candidate is returned as the fallback.
    """
    if not roles:
        raise InputError("No standard roles available")

    best_role = None
    best_score = 0.0
    for role in roles:
        score = score_role(employee, role)
        if score > best_score:
            best_role = role
            best_score = score

    if best_role is None:
        return roles[0], 0.0, True
    return best_role, best_score, False


class AssignmentMatcher:
    def __init__(self, session: Session, *, settings: Settings):
        self.session = session
        self.settings = settings
        self.repo = Repository(session)

    def run(self, progress: ProgressCallback | None = None) -> BulkAssignmentResult:
        employees = self.repo.list_employees(unassigned_only=True)
        roles = self.repo.list_standard_roles(active_only=True)
        logger.info("Bulk assignment: %s unassigned employees, %s active roles", len(employees), len(roles))

        if not employees:
            return BulkAssignmentResult(message="No employees need role assignment")
        if not roles:
            raise InputError("No standard roles available")

        result = BulkAssignmentResult(total=len(employees))
        batch_size = max(1, self.settings.assignment_batch_size)
        # read before any commit expires the loaded rows
        identities = [(employee.id, employee.full_name) for employee in employees]

        for start in range(0, len(employees), batch_size):
            for employee, (employee_id, name) in zip(
                employees[start : start + batch_size], identities[start : start + batch_size]
            ):
                result.details.append(self._assign_one(employee, employee_id, name, roles, result))
            if progress is not None:
                progress(min(start + batch_size, len(employees)), len(employees))

        result.message = f"Bulk assignment completed: {result.assigned} assigned, {result.failed} failed"
        logger.info(result.message)
        return result

    def _assign_one(
        self,
        employee: Employee,
        employee_id: int,
        name: str,
        roles: list,
        result: BulkAssignmentResult,
    ) -> AssignmentDetail:
        try:
            role, score, fallback = pick_best_role(employee, roles)
            role_id = role.id
            role_title = role.role_title
            notes = FALLBACK_NOTE if fallback else f"AI bulk assignment (score {score:.2f})"
            self.repo.assign_employee_role(
                employee_id,
                role_id=role_id,
                status="ai_suggested",
                notes=notes,
                suggested=True,
            )
        except (SQLAlchemyError, ValueError) as exc:
            logger.error("Role assignment failed employee=%s error=%s", employee_id, exc)
            result.failed += 1
            return AssignmentDetail(employee=name, status="failed", error=str(exc))

        result.assigned += 1
        logger.debug("Assigned '%s' to %s (score=%s fallback=%s)", role_title, name, score, fallback)
        return AssignmentDetail(employee=name, status="assigned", assigned_role=role_title, score=score)

    def assign_role_manually(
        self,
        employee_id: int,
        role_id: int,
        *,
        notes: str = "",
        assigned_by: str | None = None,
    ) -> Employee:
        employee = self.repo.get_employee(employee_id)
        if employee is None:
            raise NotFoundError(f"employee {employee_id} not found")
        role = self.repo.get_standard_role(role_id)
        if role is None or not role.is_active:
            raise InputError(f"standard role {role_id} does not exist or is inactive")

        return self.repo.assign_employee_role(
            employee_id,
            role_id=role_id,
            status="manually_assigned",
            notes=notes,
            assigned_by=assigned_by,
        )

    def approve_assignment(self, employee_id: int) -> Employee:
        employee = self.repo.get_employee(employee_id)
        if employee is None:
            raise NotFoundError(f"employee {employee_id} not found")
        if employee.standard_role_id is None:
            raise InputError(f"employee {employee_id} has no role to approve")
        return self.repo.set_employee_status(employee_id, "approved")

    def approve_all_suggested(self) -> int:
        approved = 0
        for employee in self.repo.list_employees_by_status("ai_suggested"):
            if employee.standard_role_id is None:
                continue
            self.repo.set_employee_status(employee.id, "approved")
            approved += 1
        return approved
