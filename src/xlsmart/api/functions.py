from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from xlsmart.api.deps import get_db, get_llm, get_settings
from xlsmart.api.schemas import ClearDatabaseRequest, StandardizeRequest
from xlsmart.config import Settings
from xlsmart.core.confidence import ConfidenceRecalculator
from xlsmart.core.maintenance import clear_database
from xlsmart.core.matcher import AssignmentMatcher
from xlsmart.core.standardizer import StandardizationEngine
from xlsmart.errors import XLSmartError
from xlsmart.llm.router import LLMRouter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/functions", tags=["functions"])


def _success(payload: dict[str, Any]) -> JSONResponse:
    return JSONResponse({"success": True, **payload})


def _failure(name: str, exc: Exception) -> JSONResponse:
    logger.error("%s failed: %s", name, exc, exc_info=not isinstance(exc, XLSmartError))
    return JSONResponse(status_code=500, content={"success": False, "error": str(exc)})


@router.post("/role-standardize-simple")
def role_standardize_simple(
    payload: StandardizeRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    llm: LLMRouter = Depends(get_llm),
) -> JSONResponse:
    try:
        engine = StandardizationEngine(db, settings=settings, llm=llm)
        result = engine.standardize(
            session_id=payload.session_id,
            parsed_data=payload.parsed_data,
            force=payload.force,
        )
    except Exception as exc:
        return _failure("role-standardize-simple", exc)
    return _success(result)


@router.post("/bulk-assign-roles")
def bulk_assign_roles(
    payload: dict[str, Any] | None = Body(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    try:
        result = AssignmentMatcher(db, settings=settings).run()
    except Exception as exc:
        return _failure("bulk-assign-roles", exc)
    return _success(result.model_dump())


@router.post("/fix-existing-mappings")
def fix_existing_mappings(
    payload: dict[str, Any] | None = Body(default=None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    try:
        result = ConfidenceRecalculator(db, settings=settings).run()
    except Exception as exc:
        return _failure("fix-existing-mappings", exc)
    return _success(result)


@router.post("/clear-database")
def clear_database_endpoint(
    payload: ClearDatabaseRequest | None = None,
    db: Session = Depends(get_db),
) -> JSONResponse:
    include_roles = payload.include_standard_roles if payload else False
    try:
        result = clear_database(db, include_standard_roles=include_roles)
    except Exception as exc:
        return _failure("clear-database", exc)
    return _success({"message": "Database cleared successfully", **result})
