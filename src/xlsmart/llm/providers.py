from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from openai import APIError, OpenAI, OpenAIError

from xlsmart.config import Settings
from xlsmart.errors import BackendError, ConfigurationError
from xlsmart.types import ModelResponse

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int


class LLMProvider:
    def __init__(self, config: ProviderConfig):
        self.config = config
        self.client = OpenAI(
            base_url=config.base_url,
            api_key=config.api_key or "unset",
            timeout=float(config.timeout_sec),
        )

    def complete_chat(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
    ) -> ModelResponse:
        if not self.config.api_key:
            raise ConfigurationError("OpenAI API key not configured")

        try:
            response = self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except APIError as exc:
            status_code = getattr(exc, "status_code", None)
            logger.warning(
                "Text generation request failed provider=%s status=%s error=%s",
                self.config.name,
                status_code,
                exc,
            )
            detail = f"HTTP {status_code}: {exc}" if status_code else str(exc)
            raise BackendError(f"Text generation API error: {detail}") from exc
        except OpenAIError as exc:
            raise BackendError(f"Text generation API error: {exc}") from exc

        text = self._extract_chat_text(response)
        raw = response.model_dump() if hasattr(response, "model_dump") else {}
        if not isinstance(raw, dict):
            raw = {"raw": raw}
        raw["provider"] = self.config.name
        return ModelResponse(content=text, raw=raw)

    @staticmethod
    def _extract_chat_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""

        message = getattr(choices[0], "message", None)
        if message is None:
            return ""

        content = getattr(message, "content", "")
        if isinstance(content, str):
            return content
        if content is None:
            return ""
        return str(content)


def build_provider(settings: Settings) -> LLMProvider:
    return LLMProvider(
        ProviderConfig(
            name="openai",
            base_url=settings.openai_base_url,
            api_key=settings.openai_api_key,
            timeout_sec=settings.openai_timeout_sec,
        )
    )
