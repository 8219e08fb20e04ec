from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest
from openai import APIConnectionError

from xlsmart.errors import BackendError, ConfigurationError
from xlsmart.llm.providers import LLMProvider, ProviderConfig


class FakeChatPayload:
    def __init__(self, *, content, raw: dict | None = None):
        self.choices = [SimpleNamespace(message=SimpleNamespace(content=content))]
        self._raw = raw or {}

    def model_dump(self) -> dict:
        return self._raw


class FakeChatCompletionsAPI:
    def __init__(self, fn):
        self._fn = fn

    def create(self, **kwargs):
        return self._fn(**kwargs)


class FakeClient:
    def __init__(self, chat_fn):
        self.chat = SimpleNamespace(completions=FakeChatCompletionsAPI(chat_fn))


def _provider(chat_fn, *, api_key: str = "dummy") -> LLMProvider:
    provider = LLMProvider(
        ProviderConfig(
            name="openai",
            base_url="http://localhost:9999/v1",
            api_key=api_key,
            timeout_sec=5,
        )
    )
    provider.client = FakeClient(chat_fn)
    return provider


def _complete(provider: LLMProvider):
    return provider.complete_chat(
        model="gpt-4o-mini",
        messages=[{"role": "user", "content": "ping"}],
        temperature=0.3,
        max_tokens=3000,
    )


def test_complete_chat_returns_message_content() -> None:
    seen = {}

    def chat_fn(**kwargs):
        seen.update(kwargs)
        return FakeChatPayload(content='{"ok": true}', raw={"id": "chat_1"})

    result = _complete(_provider(chat_fn))

    assert result.content == '{"ok": true}'
    assert result.raw["id"] == "chat_1"
    assert result.raw["provider"] == "openai"
    assert seen["model"] == "gpt-4o-mini"
    assert seen["temperature"] == 0.3
    assert seen["max_tokens"] == 3000


def test_missing_message_content_is_empty_text() -> None:
    result = _complete(_provider(lambda **kwargs: FakeChatPayload(content=None)))

    assert result.content == ""


def test_missing_api_key_fails_before_any_request() -> None:
    called = {"value": False}

    def chat_fn(**kwargs):
        called["value"] = True
        return FakeChatPayload(content="{}")

    with pytest.raises(ConfigurationError, match="OpenAI API key not configured"):
        _complete(_provider(chat_fn, api_key=""))
    assert called["value"] is False


def test_transport_failure_becomes_backend_error() -> None:
    def chat_fn(**kwargs):
        raise APIConnectionError(request=httpx.Request("POST", "http://localhost:9999/v1/chat/completions"))

    with pytest.raises(BackendError, match="Text generation API error"):
        _complete(_provider(chat_fn))
