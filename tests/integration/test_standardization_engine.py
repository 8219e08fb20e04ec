from __future__ import annotations

import pytest
from sqlalchemy import func, select

from xlsmart.core.standardizer import StandardizationEngine
from xlsmart.db.models import RoleMapping, StandardRole
from xlsmart.db.repositories import Repository
from xlsmart.errors import ConfigurationError, InputError, InvalidStatusTransition, NotFoundError
from xlsmart.llm.router import LLMRouter


def _count(db, model) -> int:
    return db.scalar(select(func.count(model.id)))


def test_standardize_creates_roles_and_linked_mappings(db, settings, llm, fake_openai, upload_session, standardization_reply) -> None:
    fake_openai.queue(standardization_reply)

    result = StandardizationEngine(db, settings=settings, llm=llm).standardize(session_id=upload_session.id)

    assert result == {"sessionId": upload_session.id, "standardRolesCreated": 2, "mappingsCreated": 3}

    repo = Repository(db)
    upload = repo.get_upload_session(upload_session.id)
    assert upload.status == "completed"
    assert upload.ai_analysis["standardRolesCreated"] == 2
    assert upload.ai_analysis["mappingsCreated"] == 3

    roles = {role.role_title: role for role in repo.list_standard_roles()}
    assert roles["Software Engineer"].required_skills == ["Python", "SQL"]
    assert roles["Software Engineer"].created_by == "hr-admin"
    assert roles["Software Engineer"].session_id == upload_session.id
    assert all(role.version == 1 for role in roles.values())

    mappings = repo.list_role_mappings(catalog_id=upload_session.id)
    assert [item.mapping_confidence for item in mappings] == [92, 80, 65]
    for mapping in mappings:
        assert mapping.requires_manual_review == (mapping.mapping_confidence < 80)
        assert mapping.standard_role_id in {role.id for role in roles.values()}
        assert mapping.confidence_source == "model"

    network = mappings[2]
    assert network.mapping_status == "manual_review"
    assert network.standardized_role_title == "Software Engineer"
    assert network.standardized_department == "IT"
    assert network.job_family == "Technology"


def test_standardize_sends_sampled_rows_to_the_model(db, settings, llm, fake_openai, upload_session, standardization_reply) -> None:
    fake_openai.queue(standardization_reply)

    StandardizationEngine(db, settings=settings, llm=llm).standardize(session_id=upload_session.id)

    [call] = fake_openai.calls
    assert call["model"] == "gpt-4o-mini"
    assert call["temperature"] == 0.3
    assert call["max_tokens"] == 3000
    assert [message["role"] for message in call["messages"]] == ["system", "user"]
    assert "Network Engineer" in call["messages"][1]["content"]


def test_missing_mappings_commits_nothing(db, settings, llm, fake_openai, upload_session, standardization_reply) -> None:
    standardization_reply.pop("mappings")
    fake_openai.queue(standardization_reply)
    engine = StandardizationEngine(db, settings=settings, llm=llm)

    with pytest.raises(InputError, match="AI returned invalid JSON format: missing required field"):
        engine.standardize(session_id=upload_session.id)

    assert _count(db, StandardRole) == 0
    assert _count(db, RoleMapping) == 0
    upload = Repository(db).get_upload_session(upload_session.id)
    assert upload.status == "error"
    assert "mappings" in upload.error


def test_failed_session_can_be_retried(db, settings, llm, fake_openai, upload_session, standardization_reply) -> None:
    fake_openai.queue("not json")
    fake_openai.queue(standardization_reply)
    engine = StandardizationEngine(db, settings=settings, llm=llm)

    with pytest.raises(InputError):
        engine.standardize(session_id=upload_session.id)
    result = engine.standardize(session_id=upload_session.id)

    assert result["standardRolesCreated"] == 2
    upload = Repository(db).get_upload_session(upload_session.id)
    assert upload.status == "completed"
    assert upload.error == ""


def test_missing_api_key_fails_before_any_write(db, settings, fake_openai, upload_session) -> None:
    keyless = settings.model_copy(update={"openai_api_key": ""})
    engine = StandardizationEngine(db, settings=keyless, llm=LLMRouter(keyless))

    with pytest.raises(ConfigurationError):
        engine.standardize(session_id=upload_session.id)

    assert Repository(db).get_upload_session(upload_session.id).status == "analyzing"
    assert fake_openai.calls == []


def test_rerun_requires_force_and_versions_roles(db, settings, llm, fake_openai, upload_session, standardization_reply) -> None:
    fake_openai.queue(standardization_reply)
    engine = StandardizationEngine(db, settings=settings, llm=llm)
    engine.standardize(session_id=upload_session.id)

    with pytest.raises(InputError, match="already standardized"):
        engine.standardize(session_id=upload_session.id)

    fake_openai.queue(standardization_reply)
    engine.standardize(session_id=upload_session.id, force=True)

    versions = sorted(
        role.version for role in Repository(db).list_standard_roles() if role.role_title == "Software Engineer"
    )
    assert versions == [1, 2]
    assert _count(db, RoleMapping) == 6
    assert Repository(db).get_upload_session(upload_session.id).status == "completed"


def test_inline_parsed_data_without_session(db, settings, llm, fake_openai, standardization_reply) -> None:
    fake_openai.queue(standardization_reply)
    parsed = [{"fileName": "inline.csv", "headers": ["Job Title"], "rows": [["Software Engineer"]]}]

    result = StandardizationEngine(db, settings=settings, llm=llm).standardize(parsed_data=parsed)

    assert result["sessionId"] is None
    roles = Repository(db).list_standard_roles()
    assert {role.created_by for role in roles} == {"system"}
    assert all(role.session_id is None for role in roles)


def test_duplicate_role_titles_keep_the_first(db, settings, llm, fake_openai, upload_session, standardization_reply) -> None:
    standardization_reply["standardRoles"].append({"role_title": "software engineer", "department": "Other"})
    fake_openai.queue(standardization_reply)

    result = StandardizationEngine(db, settings=settings, llm=llm).standardize(session_id=upload_session.id)

    assert result["standardRolesCreated"] == 2
    assert _count(db, StandardRole) == 2


def test_input_validation(db, settings, llm, upload_session) -> None:
    engine = StandardizationEngine(db, settings=settings, llm=llm)

    with pytest.raises(InputError, match="sessionId or parsedData is required"):
        engine.standardize()
    with pytest.raises(NotFoundError):
        engine.standardize(session_id=9999)
    with pytest.raises(InputError, match="No role data"):
        engine.standardize(parsed_data=[{"fileName": "empty.csv", "headers": ["Title"], "rows": []}])


def test_session_already_standardizing_is_rejected(db, settings, llm, upload_session) -> None:
    Repository(db).update_upload_session(upload_session.id, status="standardizing")

    with pytest.raises(InvalidStatusTransition):
        StandardizationEngine(db, settings=settings, llm=llm).standardize(session_id=upload_session.id)
