from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from xlsmart.config import Settings
from xlsmart.core.confidence import round_half_up
from xlsmart.core.lifecycle import SessionLifecycle
from xlsmart.db.models import RoleMapping, StandardRole, UploadSession
from xlsmart.db.repositories import Repository
from xlsmart.errors import ConfigurationError, InputError, NotFoundError
from xlsmart.llm.router import LLMRouter
from xlsmart.types import ParsedFile, StandardizationPayload

logger = logging.getLogger(__name__)


class StandardizationEngine:
    def __init__(self, session: Session, *, settings: Settings, llm: LLMRouter):
        self.session = session
        self.settings = settings
        self.repo = Repository(session)
        self.llm = llm

    def standardize(
        self,
        *,
        session_id: int | None = None,
        parsed_data: list[dict[str, Any]] | None = None,
        force: bool = False,
    ) -> dict[str, Any]:
        if session_id is None and not parsed_data:
            raise InputError("sessionId or parsedData is required")
        if not self.settings.openai_api_key:
            raise ConfigurationError("OpenAI API key not configured")

        upload: UploadSession | None = None
        if session_id is not None:
            upload = self.repo.get_upload_session(session_id)
            if upload is None:
                raise NotFoundError(f"upload session {session_id} not found")

        files = self._load_files(upload, parsed_data)
        rerun = self._check_rerun(upload, force)

        if upload is not None and not rerun:
            SessionLifecycle(upload.status).require("standardizing")
            self.repo.update_upload_session(upload.id, status="standardizing", error="")

        try:
            result = self.llm.standardize_roles(files)
            if not result.ok:
                raise InputError(f"AI returned invalid JSON format: {result.reason}")

            created_by = upload.created_by if upload is not None else "system"
            roles, mappings = self._persist(
                result.payload,
                session_id=upload.id if upload is not None else None,
                created_by=created_by,
            )
        except Exception as exc:
            if upload is not None:
                self._mark_failed(upload.id, exc)
            raise

        summary = {
            "standardRolesCreated": len(roles),
            "mappingsCreated": len(mappings),
            "standardizedAt": datetime.now(UTC).isoformat(),
        }
        if upload is not None:
            self.repo.update_upload_session(
                upload.id,
                status=None if rerun else "completed",
                ai_analysis=summary,
            )

        logger.info(
            "Standardization finished session=%s roles=%s mappings=%s",
            session_id,
            len(roles),
            len(mappings),
        )
        return {
            "sessionId": session_id,
            "standardRolesCreated": len(roles),
            "mappingsCreated": len(mappings),
        }

    def _load_files(self, upload: UploadSession | None, parsed_data: list[dict[str, Any]] | None) -> list[ParsedFile]:
        raw = parsed_data if parsed_data else (upload.raw_data if upload is not None else [])
        try:
            files = [ParsedFile.model_validate(item) for item in raw or []]
        except ValidationError as exc:
            raise InputError(f"parsedData is malformed: {exc.errors()[0].get('msg', 'invalid')}") from exc

        if not any(item.rows for item in files):
            raise InputError("No role data to standardize")
        return files

    def _check_rerun(self, upload: UploadSession | None, force: bool) -> bool:
        if upload is None or upload.status != "completed":
            return False
        if self.repo.count_session_roles(upload.id) and not force:
            raise InputError(
                f"upload session {upload.id} is already standardized; re-run with force to create a new version"
            )
        return True

    def _persist(
        self,
        payload: StandardizationPayload,
        *,
        session_id: int | None,
        created_by: str,
    ) -> tuple[list[StandardRole], list[RoleMapping]]:
        roles_by_title: dict[str, StandardRole] = {}
        mappings: list[RoleMapping] = []
        threshold = self.settings.review_confidence_threshold

        try:
            for draft in payload.standard_roles:
                key = draft.role_title.lower()
                if key in roles_by_title:
                    continue
                role = StandardRole(
                    **draft.model_dump(),
                    created_by=created_by,
                    version=self.repo.latest_role_version(draft.role_title) + 1,
                    session_id=session_id,
                    is_active=True,
                )
                self.session.add(role)
                roles_by_title[key] = role
            self.session.flush()

            for draft in payload.mappings:
                role = roles_by_title[draft.standardized_role_title.strip().lower()]
                confidence = round_half_up(draft.mapping_confidence)
                needs_review = confidence < threshold
                mapping = RoleMapping(
                    original_role_title=draft.original_role_title,
                    original_department=draft.original_department,
                    original_level=draft.original_level,
                    standardized_role_title=role.role_title,
                    standardized_department=role.department,
                    standardized_level=role.role_level,
                    job_family=role.job_family,
                    standard_role_id=role.id,
                    mapping_confidence=confidence,
                    confidence_source="model",
                    mapping_status="manual_review" if needs_review else "auto_mapped",
                    requires_manual_review=needs_review,
                    catalog_id=session_id,
                )
                self.session.add(mapping)
                mappings.append(mapping)

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        return list(roles_by_title.values()), mappings

    def _mark_failed(self, session_id: int, exc: Exception) -> None:
        logger.error("Standardization failed session=%s error=%s", session_id, exc)
        try:
            self.repo.update_upload_session(session_id, status="error", error=str(exc))
        except Exception:
            self.session.rollback()
            logger.exception("Could not record failure on upload session %s", session_id)
