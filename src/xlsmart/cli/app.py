from __future__ import annotations

import json
from pathlib import Path
from typing import Any, NoReturn

import typer
import uvicorn

from xlsmart.api.app import create_app
from xlsmart.config import Settings, get_settings
from xlsmart.core.confidence import ConfidenceRecalculator
from xlsmart.core.maintenance import clear_database
from xlsmart.core.matcher import AssignmentMatcher
from xlsmart.core.normalizer import CatalogNormalizer, UploadedFile
from xlsmart.core.standardizer import StandardizationEngine
from xlsmart.core.tasks import serialize_task
from xlsmart.db.init import init_database
from xlsmart.db.repositories import Repository
from xlsmart.db.session import Database
from xlsmart.errors import XLSmartError
from xlsmart.llm.router import LLMRouter
from xlsmart.logging_config import configure_logging

app = typer.Typer(help="XLSMART role standardization CLI")
session_app = typer.Typer(help="Upload session status")
task_app = typer.Typer(help="Background task status")

app.add_typer(session_app, name="session")
app.add_typer(task_app, name="task")


def _bootstrap() -> tuple[Settings, Database]:
    settings = get_settings()
    configure_logging(settings)
    database = Database(settings)
    init_database(settings, database)
    return settings, database


def _echo(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def _fail(exc: XLSmartError) -> NoReturn:
    _echo({"success": False, "error": str(exc)})
    raise typer.Exit(code=1)


@app.command("init")
def init_cmd() -> None:
    """Initialize the database and data directory."""
    settings = get_settings()
    configure_logging(settings)
    result = init_database(settings, Database(settings))
    _echo({"ok": True, **result})


@app.command("upload")
def upload_cmd(
    files: list[Path] = typer.Option(..., "--file", exists=True, readable=True, dir_okay=False),
    owner: str = typer.Option(..., "--owner"),
) -> None:
    """Parse role spreadsheets into a new upload session."""
    _, database = _bootstrap()
    uploaded = [UploadedFile(file_name=path.name, content=path.read_bytes()) for path in files]
    with database.session() as db:
        try:
            result = CatalogNormalizer(db).create_session(uploaded, owner=owner)
        except XLSmartError as exc:
            _fail(exc)
        _echo(
            {
                "success": True,
                "sessionId": result.session_id,
                "totalRows": result.total_rows,
                "fileErrors": result.file_errors,
            }
        )


@app.command("standardize")
def standardize_cmd(
    session_id: int = typer.Option(..., "--session-id"),
    force: bool = typer.Option(False, "--force"),
) -> None:
    """Generate standard roles and mappings for an upload session."""
    settings, database = _bootstrap()
    with database.session() as db:
        engine = StandardizationEngine(db, settings=settings, llm=LLMRouter(settings))
        try:
            result = engine.standardize(session_id=session_id, force=force)
        except XLSmartError as exc:
            _fail(exc)
        _echo({"success": True, **result})


@app.command("assign-roles")
def assign_roles_cmd() -> None:
    """Backfill standard roles for every unassigned employee."""
    settings, database = _bootstrap()
    with database.session() as db:
        try:
            result = AssignmentMatcher(db, settings=settings).run()
        except XLSmartError as exc:
            _fail(exc)
        _echo({"success": True, **result.model_dump()})


@app.command("fix-mappings")
def fix_mappings_cmd() -> None:
    """Recompute mapping confidence from title similarity."""
    settings, database = _bootstrap()
    with database.session() as db:
        result = ConfidenceRecalculator(db, settings=settings).run()
        _echo({"success": True, **result})


@app.command("clear-database")
def clear_database_cmd(
    include_roles: bool = typer.Option(False, "--include-roles"),
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt"),
) -> None:
    """Delete upload sessions, mappings and tasks; reset employee assignments."""
    if not yes:
        typer.confirm("This deletes all derived role data. Continue?", abort=True)
    _, database = _bootstrap()
    with database.session() as db:
        _echo({"success": True, **clear_database(db, include_standard_roles=include_roles)})


@session_app.command("status")
def session_status(session_id: int = typer.Option(..., "--session-id")) -> None:
    _, database = _bootstrap()
    with database.session() as db:
        upload = Repository(db).get_upload_session(session_id)
        if not upload:
            raise typer.BadParameter(f"upload session {session_id} not found")
        _echo(
            {
                "id": upload.id,
                "session_name": upload.session_name,
                "status": upload.status,
                "total_rows": upload.total_rows,
                "error": upload.error,
                "ai_analysis": upload.ai_analysis,
            }
        )


@task_app.command("status")
def task_status(task_id: int = typer.Option(..., "--task-id")) -> None:
    _, database = _bootstrap()
    with database.session() as db:
        task = Repository(db).get_task(task_id)
        if not task:
            raise typer.BadParameter(f"task {task_id} not found")
        _echo(serialize_task(task))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    settings, database = _bootstrap()
    app_instance = create_app(settings, database=database)
    uvicorn.run(app_instance, host=host or settings.app_host, port=port or settings.app_port)
