from __future__ import annotations

from collections.abc import Generator

from fastapi import Header, HTTPException, Request
from sqlalchemy.orm import Session

from xlsmart.config import Settings
from xlsmart.core.tasks import TaskRunner
from xlsmart.llm.router import LLMRouter


def get_db(request: Request) -> Generator[Session, None, None]:
    yield from request.app.state.database.session_scope()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_llm(request: Request) -> LLMRouter:
    return request.app.state.llm


def get_task_runner(request: Request) -> TaskRunner:
    return request.app.state.task_runner


def get_current_user(x_user_id: str | None = Header(default=None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Not authenticated")
    return x_user_id.strip()
