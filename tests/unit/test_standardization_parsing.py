from __future__ import annotations

import json

from xlsmart.llm.parsing import parse_json_object, parse_standardization_reply, strip_code_fences
from xlsmart.llm.router import build_standardization_prompt
from xlsmart.types import ParsedFile


def _reply(**overrides) -> dict:
    payload = {
        "standardRoles": [{"role_title": "Network Engineer", "department": "Network Operations"}],
        "mappings": [
            {
                "original_role_title": "Sr. Network Eng",
                "standardized_role_title": "network engineer",
                "mapping_confidence": 88,
            }
        ],
    }
    payload.update(overrides)
    return payload


def test_valid_reply_is_ok() -> None:
    result = parse_standardization_reply(json.dumps(_reply()))

    assert result.ok is True
    assert result.payload.standard_roles[0].role_title == "Network Engineer"
    assert result.payload.mappings[0].mapping_confidence == 88


def test_code_fenced_reply_is_unwrapped() -> None:
    content = "Here you go:\n```json\n" + json.dumps(_reply()) + "\n```"

    result = parse_standardization_reply(content)

    assert result.ok is True


def test_missing_mappings_is_a_parse_error() -> None:
    data = _reply()
    data.pop("mappings")

    result = parse_standardization_reply(json.dumps(data))

    assert result.ok is False
    assert result.reason == "missing required field(s): mappings"
    assert "standardRoles" in result.raw_content


def test_non_json_reply_is_a_parse_error() -> None:
    result = parse_standardization_reply("I could not process these roles.")

    assert result.ok is False
    assert result.reason == "reply is not a JSON object"


def test_empty_role_list_is_a_parse_error() -> None:
    result = parse_standardization_reply(json.dumps(_reply(standardRoles=[], mappings=[])))

    assert result.ok is False
    assert result.reason == "standardRoles is empty"


def test_blank_role_title_is_a_parse_error() -> None:
    result = parse_standardization_reply(json.dumps(_reply(standardRoles=[{"role_title": "   "}])))

    assert result.ok is False
    assert result.reason.startswith("invalid field standardRoles.0.role_title")


def test_mapping_to_unknown_role_is_a_parse_error() -> None:
    data = _reply()
    data["mappings"][0]["standardized_role_title"] = "Radio Planner"

    result = parse_standardization_reply(json.dumps(data))

    assert result.ok is False
    assert "unknown standard role 'Radio Planner'" in result.reason


def test_confidence_is_clamped_and_lists_are_split() -> None:
    data = _reply(
        standardRoles=[{"role_title": "Network Engineer", "required_skills": "RAN, LTE, ", "department": None}],
        mappings=[
            {"original_role_title": "A", "standardized_role_title": "Network Engineer", "mapping_confidence": 140},
            {"original_role_title": "B", "standardized_role_title": "Network Engineer", "mapping_confidence": "high"},
        ],
    )

    result = parse_standardization_reply(json.dumps(data))

    assert result.ok is True
    role = result.payload.standard_roles[0]
    assert role.required_skills == ["RAN", "LTE"]
    assert role.department == ""
    assert [item.mapping_confidence for item in result.payload.mappings] == [100.0, 0.0]


def test_json_helpers() -> None:
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert parse_json_object("[1, 2]") is None
    assert parse_json_object('{"a": 1}') == {"a": 1}


def test_prompt_samples_only_leading_rows() -> None:
    parsed = ParsedFile(
        file_name="roles.xlsx",
        headers=["Job Title"],
        rows=[[f"Role {index}"] for index in range(1, 13)],
    )

    prompt = build_standardization_prompt([parsed], sample_rows=10)

    assert "roles.xlsx" in prompt
    assert "Job Title" in prompt
    assert "Role 10" in prompt
    assert "Role 11" not in prompt


def test_experience_years_accept_null_fractional_and_numeric_strings() -> None:
    data = _reply(
        standardRoles=[
            {"role_title": "Network Engineer", "experience_range_min": None, "experience_range_max": 2.5},
            {"role_title": "Data Analyst", "experience_range_min": "7", "experience_range_max": "n/a"},
        ],
        mappings=[
            {"original_role_title": "A", "standardized_role_title": "Network Engineer", "mapping_confidence": 70},
        ],
    )

    result = parse_standardization_reply(json.dumps(data))

    assert result.ok is True
    first, second = result.payload.standard_roles
    assert (first.experience_range_min, first.experience_range_max) == (0, 3)
    assert (second.experience_range_min, second.experience_range_max) == (7, 0)
