from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from xlsmart.api.app import create_app
from xlsmart.config import Settings
from xlsmart.core.normalizer import CatalogNormalizer, UploadedFile
from xlsmart.db.init import init_database
from xlsmart.db.models import StandardRole
from xlsmart.db.repositories import Repository
from xlsmart.db.session import Database
from xlsmart.llm.providers import build_provider
from xlsmart.llm.router import LLMRouter

ROLES_CSV = (
    "Job Title,Department,Level\n"
    "Software Engineer,IT,Senior\n"
    "Data Analyst,Finance,Mid\n"
    "Network Engineer,IT,Junior\n"
).encode("utf-8")


class FakeChatPayload:
    def __init__(self, *, content: str, raw: dict | None = None):
        self.choices = [SimpleNamespace(message=SimpleNamespace(content=content))]
        self._raw = raw or {}

    def model_dump(self) -> dict:
        return self._raw


class FakeChatCompletionsAPI:
    def __init__(self, owner: "FakeOpenAIClient"):
        self._owner = owner

    def create(self, **kwargs):
        self._owner.calls.append(kwargs)
        if not self._owner.replies:
            raise AssertionError("no fake reply queued")
        reply = self._owner.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return FakeChatPayload(content=reply, raw={"id": f"chat_{len(self._owner.calls)}"})


class FakeOpenAIClient:
    def __init__(self):
        self.replies: list = []
        self.calls: list[dict] = []
        self.chat = SimpleNamespace(completions=FakeChatCompletionsAPI(self))

    def queue(self, reply) -> None:
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        self.replies.append(reply)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        app_env="test",
        database_url=f"sqlite:///{tmp_path / 'xlsmart_test.db'}",
        data_dir=tmp_path / "data",
        openai_api_key="test-key",
    )


@pytest.fixture
def database(settings: Settings):
    database = Database(settings)
    init_database(settings, database)
    yield database
    database.dispose()


@pytest.fixture
def db(database: Database):
    with database.session() as session:
        yield session


@pytest.fixture
def fake_openai() -> FakeOpenAIClient:
    return FakeOpenAIClient()


@pytest.fixture
def llm(settings: Settings, fake_openai: FakeOpenAIClient) -> LLMRouter:
    provider = build_provider(settings)
    provider.client = fake_openai
    return LLMRouter(settings, provider=provider)


@pytest.fixture
def client(settings: Settings, database: Database, llm: LLMRouter) -> TestClient:
    return TestClient(create_app(settings, database=database, llm=llm))


@pytest.fixture
def standardization_reply() -> dict:
    return {
        "standardRoles": [
            {
                "role_title": "Software Engineer",
                "department": "IT",
                "job_family": "Technology",
                "role_level": "Senior",
                "role_category": "Engineering",
                "standard_description": "Builds and maintains software systems.",
                "core_responsibilities": ["Design services", "Review code"],
                "required_skills": "Python, SQL",
                "experience_range_min": 3,
                "experience_range_max": 8,
            },
            {
                "role_title": "Data Analyst",
                "department": "Finance",
                "job_family": "Analytics",
                "role_level": "Mid",
                "required_skills": ["Excel", "SQL"],
            },
        ],
        "mappings": [
            {
                "original_role_title": "Software Engineer",
                "original_department": "IT",
                "original_level": "Senior",
                "standardized_role_title": "Software Engineer",
                "mapping_confidence": 92,
            },
            {
                "original_role_title": "Data Analyst",
                "original_department": "Finance",
                "original_level": "Mid",
                "standardized_role_title": "Data Analyst",
                "mapping_confidence": 79.5,
            },
            {
                "original_role_title": "Network Engineer",
                "original_department": "IT",
                "original_level": "Junior",
                "standardized_role_title": "Software Engineer",
                "mapping_confidence": 65,
            },
        ],
    }


@pytest.fixture
def upload_session(db):
    result = CatalogNormalizer(db).create_session(
        [UploadedFile(file_name="roles.csv", content=ROLES_CSV)],
        owner="hr-admin",
    )
    return Repository(db).get_upload_session(result.session_id)


@pytest.fixture
def make_role(db):
    def _make(title: str, *, department: str = "", job_family: str = "", is_active: bool = True) -> StandardRole:
        role = StandardRole(
            role_title=title,
            department=department,
            job_family=job_family,
            is_active=is_active,
        )
        db.add(role)
        db.commit()
        db.refresh(role)
        return role

    return _make


@pytest.fixture
def make_employee(db):
    def _make(first_name: str, position: str, *, department: str = "", skills: list[str] | None = None):
        return Repository(db).create_employee(
            {
                "first_name": first_name,
                "last_name": "Tester",
                "current_position": position,
                "current_department": department,
                "skills": skills or [],
            }
        )

    return _make
