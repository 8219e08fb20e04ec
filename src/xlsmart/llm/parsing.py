from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from xlsmart.types import (
    StandardizationOk,
    StandardizationParseError,
    StandardizationPayload,
    StandardizationResult,
)

logger = logging.getLogger(__name__)


def strip_code_fences(content: str) -> str:
    candidate = content.strip()
    if "```" not in candidate:
        return candidate

    for part in candidate.split("```"):
        part = part.strip()
        if part.startswith("json"):
            part = part[4:].strip()
        if part.startswith("{") and part.endswith("}"):
            return part
    return candidate


def parse_json_object(content: str) -> dict[str, Any] | None:
    candidate = strip_code_fences(content)
    if not candidate:
        return None
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError:
        logger.warning("Failed to parse JSON model output")
        return None
    return value if isinstance(value, dict) else None


def parse_standardization_reply(content: str) -> StandardizationResult:
    """Validate a model reply into roles + mappings without raising.

    Every mapping must point at one of the roles in the same reply, so the
    caller can link them before anything is written.
    """
    data = parse_json_object(content)
    if data is None:
        return StandardizationParseError(reason="reply is not a JSON object", raw_content=content)

    missing = [key for key in ("standardRoles", "mappings") if key not in data]
    if missing:
        return StandardizationParseError(
            reason=f"missing required field(s): {', '.join(missing)}",
            raw_content=content,
        )

    try:
        payload = StandardizationPayload.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return StandardizationParseError(
            reason=f"invalid field {location}: {first.get('msg', 'validation error')}",
            raw_content=content,
        )

    if not payload.standard_roles:
        return StandardizationParseError(reason="standardRoles is empty", raw_content=content)

    titles = {role.role_title.lower() for role in payload.standard_roles}
    for mapping in payload.mappings:
        if mapping.standardized_role_title.strip().lower() not in titles:
            return StandardizationParseError(
                reason=(
                    f"mapping for '{mapping.original_role_title}' references unknown "
                    f"standard role '{mapping.standardized_role_title}'"
                ),
                raw_content=content,
            )

    return StandardizationOk(payload=payload)
