from __future__ import annotations

import json
import logging

from xlsmart.config import Settings
from xlsmart.llm.parsing import parse_standardization_reply
from xlsmart.llm.prompts import (
    FILE_SECTION_TEMPLATE,
    STANDARDIZATION_PROMPT,
    STANDARDIZATION_SYSTEM_PROMPT,
)
from xlsmart.llm.providers import LLMProvider, build_provider
from xlsmart.types import ParsedFile, StandardizationResult

logger = logging.getLogger(__name__)

MIN_STANDARD_ROLES = 5
MAX_STANDARD_ROLES = 15


class LLMRouter:
    def __init__(self, settings: Settings, provider: LLMProvider | None = None):
        self.settings = settings
        self.provider = provider or build_provider(settings)

    def standardize_roles(self, parsed_files: list[ParsedFile]) -> StandardizationResult:
        prompt = build_standardization_prompt(
            parsed_files, sample_rows=self.settings.standardization_sample_rows
        )
        response = self.provider.complete_chat(
            model=self.settings.openai_model_standardizer,
            messages=[
                {"role": "system", "content": STANDARDIZATION_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.settings.openai_temperature,
            max_tokens=self.settings.openai_max_tokens,
        )
        result = parse_standardization_reply(response.content)
        if not result.ok:
            logger.warning("Standardization reply rejected: %s", result.reason)
        return result


def build_standardization_prompt(parsed_files: list[ParsedFile], *, sample_rows: int) -> str:
    sections = [
        FILE_SECTION_TEMPLATE.format(
            file_name=item.file_name,
            headers=", ".join(item.headers),
            sample_rows=json.dumps(item.rows[:sample_rows], ensure_ascii=True, default=str),
        )
        for item in parsed_files
    ]
    return STANDARDIZATION_PROMPT.format(
        file_sections="\n\n".join(sections),
        min_roles=MIN_STANDARD_ROLES,
        max_roles=MAX_STANDARD_ROLES,
    )
