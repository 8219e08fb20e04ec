from __future__ import annotations

import logging
from typing import Any

from xlsmart.config import Settings
from xlsmart.core.confidence import ConfidenceRecalculator
from xlsmart.core.matcher import AssignmentMatcher
from xlsmart.core.standardizer import StandardizationEngine
from xlsmart.db.models import TaskRun
from xlsmart.db.repositories import Repository
from xlsmart.db.session import Database
from xlsmart.llm.router import LLMRouter

logger = logging.getLogger(__name__)

TASK_KINDS = {"standardize", "bulk_assign", "fix_mappings"}


class TaskRunner:
    """Persists long operations as TaskRun rows and executes them detached from the request."""

    def __init__(self, database: Database, *, settings: Settings, llm: LLMRouter):
        self.database = database
        self.settings = settings
        self.llm = llm

    def submit(self, kind: str, params: dict[str, Any] | None = None) -> TaskRun:
        if kind not in TASK_KINDS:
            raise ValueError(f"unsupported task kind '{kind}'")
        params = params or {}
        with self.database.session() as db:
            return Repository(db).create_task(kind=kind, params=params, session_id=params.get("session_id"))

    def execute(self, task_id: int) -> None:
        with self.database.session() as db:
            repo = Repository(db)
            task = repo.get_task(task_id)
            if task is None:
                logger.error("Task %s vanished before execution", task_id)
                return

            kind = task.kind
            params = dict(task.params or {})
            repo.update_task(task_id, status="running", started=True)
            logger.info("Task %s (%s) started", task_id, kind)

            try:
                result = self._dispatch(db, task_id, kind, params)
            except Exception as exc:
                db.rollback()
                logger.exception("Task %s (%s) failed", task_id, kind)
                repo.update_task(task_id, status="failed", error=str(exc), completed=True)
                return

            repo.update_task(task_id, status="completed", result=result, completed=True)
            logger.info("Task %s (%s) completed", task_id, kind)

    def _dispatch(self, db, task_id: int, kind: str, params: dict[str, Any]) -> dict[str, Any]:
        if kind == "standardize":
            engine = StandardizationEngine(db, settings=self.settings, llm=self.llm)
            return engine.standardize(
                session_id=params.get("session_id"),
                parsed_data=params.get("parsed_data"),
                force=bool(params.get("force", False)),
            )

        if kind == "bulk_assign":
            repo = Repository(db)

            def report(processed: int, total: int) -> None:
                repo.update_task(task_id, progress={"processed": processed, "total": total})

            return AssignmentMatcher(db, settings=self.settings).run(progress=report).model_dump()

        if kind == "fix_mappings":
            return ConfidenceRecalculator(db, settings=self.settings).run()

        raise ValueError(f"unsupported task kind '{kind}'")


def serialize_task(task: TaskRun) -> dict[str, Any]:
    return {
        "id": task.id,
        "kind": task.kind,
        "status": task.status,
        "session_id": task.session_id,
        "progress": task.progress,
        "result": task.result,
        "error": task.error,
        "started_at": task.started_at.isoformat() if task.started_at else None,
        "completed_at": task.completed_at.isoformat() if task.completed_at else None,
    }
