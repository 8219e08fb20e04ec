from __future__ import annotations

import pytest
from pydantic import ValidationError

from xlsmart.config import Settings


def test_defaults_match_review_policy() -> None:
    settings = Settings(openai_api_key="")

    assert settings.review_confidence_threshold == 80
    assert settings.confidence_update_delta == 5
    assert settings.openai_model_standardizer == "gpt-4o-mini"


def test_cors_origins_are_split() -> None:
    settings = Settings(cors_origins="http://a.example, http://b.example,")

    assert settings.cors_origin_list == ["http://a.example", "http://b.example"]


def test_unknown_environment_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(app_env="qa")


def test_review_threshold_must_be_a_percentage() -> None:
    with pytest.raises(ValidationError):
        Settings(review_confidence_threshold=120)
