from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

SessionStatus = Literal["uploading", "analyzing", "standardizing", "completed", "error"]
MappingStatus = Literal["auto_mapped", "manual_review", "approved", "rejected"]
AssignmentStatus = Literal["pending", "ai_suggested", "manually_assigned", "approved"]
ConfidenceSource = Literal["model", "heuristic"]
TaskKind = Literal["standardize", "bulk_assign", "fix_mappings"]
TaskStatus = Literal["queued", "running", "completed", "failed"]


class ParsedFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName")
    headers: list[str] = Field(default_factory=list)
    rows: list[list[Any]] = Field(default_factory=list)

    def wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class StandardRoleDraft(BaseModel):
    role_title: str = Field(min_length=1)
    department: str = ""
    job_family: str = ""
    role_level: str = ""
    role_category: str = ""
    standard_description: str = ""
    core_responsibilities: list[str] = Field(default_factory=list)
    required_skills: list[str] = Field(default_factory=list)
    experience_range_min: int = 0
    experience_range_max: int = 0

    @field_validator("role_title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("role_title must not be blank")
        return value

    @field_validator("core_responsibilities", "required_skills", mode="before")
    @classmethod
    def split_text_list(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("department", "job_family", "role_level", "role_category", "standard_description", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("experience_range_min", "experience_range_max", mode="before")
    @classmethod
    def coerce_years(cls, value: Any) -> int:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0
        if not math.isfinite(number) or number < 0:
            return 0
        return int(math.floor(number + 0.5))


class RoleMappingDraft(BaseModel):
    original_role_title: str = Field(min_length=1)
    original_department: str = ""
    original_level: str = ""
    standardized_role_title: str = Field(min_length=1)
    mapping_confidence: float = 0.0

    @field_validator("original_department", "original_level", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("mapping_confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
        return max(0.0, min(100.0, number))


class StandardizationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    standard_roles: list[StandardRoleDraft] = Field(alias="standardRoles")
    mappings: list[RoleMappingDraft]


@dataclass(slots=True)
class StandardizationOk:
    payload: StandardizationPayload
    ok: Literal[True] = True


@dataclass(slots=True)
class StandardizationParseError:
    reason: str
    raw_content: str = ""
    ok: Literal[False] = False


StandardizationResult = StandardizationOk | StandardizationParseError


class ModelResponse(BaseModel):
    content: str
    raw: dict[str, Any] = Field(default_factory=dict)


@dataclass(slots=True)
class NormalizationResult:
    session_id: int
    total_rows: int
    files: list[ParsedFile] = field(default_factory=list)
    file_errors: list[str] = field(default_factory=list)


class AssignmentDetail(BaseModel):
    employee: str
    status: Literal["assigned", "failed"]
    assigned_role: str | None = None
    score: float | None = None
    error: str | None = None


class BulkAssignmentResult(BaseModel):
    message: str = ""
    assigned: int = 0
    failed: int = 0
    total: int = 0
    details: list[AssignmentDetail] = Field(default_factory=list)
