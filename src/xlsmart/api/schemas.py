from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from xlsmart.types import AssignmentStatus, ConfidenceSource, MappingStatus, SessionStatus, TaskKind, TaskStatus


class StandardizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: int | None = Field(default=None, alias="sessionId")
    parsed_data: list[dict[str, Any]] | None = Field(default=None, alias="parsedData")
    force: bool = False


class ClearDatabaseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    include_standard_roles: bool = Field(default=False, alias="includeStandardRoles")


class UploadSessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    session_name: str
    file_names: list[str]
    total_rows: int
    status: SessionStatus
    created_by: str
    error: str
    ai_analysis: dict[str, Any]


class UploadResponse(BaseModel):
    session: UploadSessionResponse
    file_errors: list[str] = Field(default_factory=list)


class StandardRoleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role_title: str
    job_family: str
    role_level: str
    role_category: str
    department: str
    standard_description: str
    core_responsibilities: list[str]
    required_skills: list[str]
    experience_range_min: int
    experience_range_max: int
    is_active: bool
    created_by: str
    version: int
    session_id: int | None


class StandardRoleUpdateRequest(BaseModel):
    role_title: str | None = Field(default=None, min_length=1)
    job_family: str | None = None
    role_level: str | None = None
    role_category: str | None = None
    department: str | None = None
    standard_description: str | None = None
    core_responsibilities: list[str] | None = None
    required_skills: list[str] | None = None
    experience_range_min: int | None = Field(default=None, ge=0)
    experience_range_max: int | None = Field(default=None, ge=0)


class RoleMappingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    original_role_title: str
    original_department: str
    original_level: str
    standardized_role_title: str
    standardized_department: str
    standardized_level: str
    job_family: str
    standard_role_id: int
    mapping_confidence: int
    confidence_source: ConfidenceSource
    mapping_status: MappingStatus
    requires_manual_review: bool
    review_comments: str
    catalog_id: int | None


class MappingReviewRequest(BaseModel):
    comments: str = ""


class EmployeeCreateRequest(BaseModel):
    employee_number: str = ""
    first_name: str
    last_name: str = ""
    email: str = ""
    current_position: str
    current_department: str = ""
    current_level: str = ""
    skills: list[str] = Field(default_factory=list)


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    employee_number: str
    first_name: str
    last_name: str
    current_position: str
    current_department: str
    current_level: str
    skills: list[str]
    standard_role_id: int | None
    ai_suggested_role_id: int | None
    role_assignment_status: AssignmentStatus
    assignment_notes: str | None
    assigned_by: str | None


class ManualAssignRequest(BaseModel):
    role_id: int
    notes: str = ""


class TaskLaunchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: int | None = Field(default=None, alias="sessionId")
    parsed_data: list[dict[str, Any]] | None = Field(default=None, alias="parsedData")
    force: bool = False


class TaskResponse(BaseModel):
    id: int
    kind: TaskKind
    status: TaskStatus
    session_id: int | None
    progress: dict[str, Any]
    result: dict[str, Any]
    error: str
    started_at: str | None
    completed_at: str | None
