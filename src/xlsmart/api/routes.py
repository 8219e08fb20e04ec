from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session

from xlsmart.api.deps import get_current_user, get_db, get_settings, get_task_runner
from xlsmart.api.schemas import (
    EmployeeCreateRequest,
    EmployeeResponse,
    ManualAssignRequest,
    MappingReviewRequest,
    RoleMappingResponse,
    StandardRoleResponse,
    StandardRoleUpdateRequest,
    TaskLaunchRequest,
    TaskResponse,
    UploadResponse,
    UploadSessionResponse,
)
from xlsmart.config import Settings
from xlsmart.core.matcher import AssignmentMatcher
from xlsmart.core.normalizer import CatalogNormalizer, UploadedFile
from xlsmart.core.tasks import TaskRunner, serialize_task
from xlsmart.db.repositories import Repository
from xlsmart.errors import XLSmartError

router = APIRouter(prefix="/api", tags=["api"])


def _raise_http(exc: XLSmartError) -> NoReturn:
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc


@router.post("/uploads", response_model=UploadResponse)
def upload_roles(
    files: list[UploadFile] = File(...),
    owner: str = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UploadResponse:
    uploaded = [UploadedFile(file_name=item.filename or "upload", content=item.file.read()) for item in files]
    try:
        result = CatalogNormalizer(db).create_session(uploaded, owner=owner)
    except XLSmartError as exc:
        _raise_http(exc)

    upload = Repository(db).get_upload_session(result.session_id)
    return UploadResponse(
        session=UploadSessionResponse.model_validate(upload),
        file_errors=result.file_errors,
    )


@router.get("/uploads", response_model=list[UploadSessionResponse])
def list_uploads(db: Session = Depends(get_db)) -> list[UploadSessionResponse]:
    return [UploadSessionResponse.model_validate(row) for row in Repository(db).list_upload_sessions()]


@router.get("/uploads/{session_id}", response_model=UploadSessionResponse)
def get_upload(session_id: int, db: Session = Depends(get_db)) -> UploadSessionResponse:
    upload = Repository(db).get_upload_session(session_id)
    if not upload:
        raise HTTPException(status_code=404, detail="Upload session not found")
    return UploadSessionResponse.model_validate(upload)


@router.get("/standard-roles", response_model=list[StandardRoleResponse])
def list_standard_roles(include_inactive: bool = False, db: Session = Depends(get_db)) -> list[StandardRoleResponse]:
    rows = Repository(db).list_standard_roles(active_only=not include_inactive)
    return [StandardRoleResponse.model_validate(row) for row in rows]


@router.patch("/standard-roles/{role_id}", response_model=StandardRoleResponse)
def update_standard_role(
    role_id: int,
    payload: StandardRoleUpdateRequest,
    db: Session = Depends(get_db),
) -> StandardRoleResponse:
    repo = Repository(db)
    if not repo.get_standard_role(role_id):
        raise HTTPException(status_code=404, detail="Standard role not found")
    role = repo.update_standard_role(role_id, payload.model_dump(exclude_unset=True))
    return StandardRoleResponse.model_validate(role)


@router.post("/standard-roles/{role_id}/deactivate", response_model=StandardRoleResponse)
def deactivate_standard_role(role_id: int, db: Session = Depends(get_db)) -> StandardRoleResponse:
    repo = Repository(db)
    if not repo.get_standard_role(role_id):
        raise HTTPException(status_code=404, detail="Standard role not found")
    role = repo.update_standard_role(role_id, {"is_active": False})
    return StandardRoleResponse.model_validate(role)


@router.get("/role-mappings", response_model=list[RoleMappingResponse])
def list_role_mappings(session_id: int | None = None, db: Session = Depends(get_db)) -> list[RoleMappingResponse]:
    rows = Repository(db).list_role_mappings(catalog_id=session_id)
    return [RoleMappingResponse.model_validate(row) for row in rows]


@router.post("/role-mappings/{mapping_id}/approve", response_model=RoleMappingResponse)
def approve_role_mapping(
    mapping_id: int,
    payload: MappingReviewRequest | None = None,
    db: Session = Depends(get_db),
) -> RoleMappingResponse:
    return _review_mapping(db, mapping_id, "approved", payload)


@router.post("/role-mappings/{mapping_id}/reject", response_model=RoleMappingResponse)
def reject_role_mapping(
    mapping_id: int,
    payload: MappingReviewRequest | None = None,
    db: Session = Depends(get_db),
) -> RoleMappingResponse:
    return _review_mapping(db, mapping_id, "rejected", payload)


def _review_mapping(db: Session, mapping_id: int, status: str, payload: MappingReviewRequest | None) -> RoleMappingResponse:
    repo = Repository(db)
    if not repo.get_role_mapping(mapping_id):
        raise HTTPException(status_code=404, detail="Role mapping not found")
    mapping = repo.set_mapping_status(mapping_id, status, comments=payload.comments if payload else "")
    return RoleMappingResponse.model_validate(mapping)


@router.post("/employees", response_model=EmployeeResponse)
def create_employee(payload: EmployeeCreateRequest, db: Session = Depends(get_db)) -> EmployeeResponse:
    employee = Repository(db).create_employee(payload.model_dump())
    return EmployeeResponse.model_validate(employee)


@router.get("/employees", response_model=list[EmployeeResponse])
def list_employees(unassigned: bool = False, db: Session = Depends(get_db)) -> list[EmployeeResponse]:
    rows = Repository(db).list_employees(unassigned_only=unassigned)
    return [EmployeeResponse.model_validate(row) for row in rows]


@router.post("/employees/{employee_id}/assign", response_model=EmployeeResponse)
def assign_employee_role(
    employee_id: int,
    payload: ManualAssignRequest,
    user: str = Depends(get_current_user),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> EmployeeResponse:
    matcher = AssignmentMatcher(db, settings=settings)
    try:
        employee = matcher.assign_role_manually(
            employee_id, payload.role_id, notes=payload.notes, assigned_by=user
        )
    except XLSmartError as exc:
        _raise_http(exc)
    return EmployeeResponse.model_validate(employee)


@router.post("/employees/{employee_id}/approve", response_model=EmployeeResponse)
def approve_employee_role(
    employee_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> EmployeeResponse:
    try:
        employee = AssignmentMatcher(db, settings=settings).approve_assignment(employee_id)
    except XLSmartError as exc:
        _raise_http(exc)
    return EmployeeResponse.model_validate(employee)


@router.post("/employees/approve-suggested")
def approve_suggested_roles(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)) -> dict:
    approved = AssignmentMatcher(db, settings=settings).approve_all_suggested()
    return {"approved": approved}


@router.post("/tasks/standardize", response_model=TaskResponse)
def launch_standardize_task(
    payload: TaskLaunchRequest,
    background_tasks: BackgroundTasks,
    runner: TaskRunner = Depends(get_task_runner),
    db: Session = Depends(get_db),
) -> TaskResponse:
    if payload.session_id is None and not payload.parsed_data:
        raise HTTPException(status_code=400, detail="sessionId or parsedData is required")
    if payload.session_id is not None and not Repository(db).get_upload_session(payload.session_id):
        raise HTTPException(status_code=404, detail="Upload session not found")
    task = runner.submit(
        "standardize",
        {"session_id": payload.session_id, "parsed_data": payload.parsed_data, "force": payload.force},
    )
    background_tasks.add_task(runner.execute, task.id)
    return TaskResponse.model_validate(serialize_task(task))


@router.post("/tasks/bulk-assign", response_model=TaskResponse)
def launch_bulk_assign_task(
    background_tasks: BackgroundTasks,
    runner: TaskRunner = Depends(get_task_runner),
) -> TaskResponse:
    task = runner.submit("bulk_assign")
    background_tasks.add_task(runner.execute, task.id)
    return TaskResponse.model_validate(serialize_task(task))


@router.post("/tasks/fix-mappings", response_model=TaskResponse)
def launch_fix_mappings_task(
    background_tasks: BackgroundTasks,
    runner: TaskRunner = Depends(get_task_runner),
) -> TaskResponse:
    task = runner.submit("fix_mappings")
    background_tasks.add_task(runner.execute, task.id)
    return TaskResponse.model_validate(serialize_task(task))


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(task_id: int, db: Session = Depends(get_db)) -> TaskResponse:
    task = Repository(db).get_task(task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return TaskResponse.model_validate(serialize_task(task))
