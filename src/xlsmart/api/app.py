from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from xlsmart.api.functions import router as functions_router
from xlsmart.api.routes import router as api_router
from xlsmart.config import Settings, get_settings
from xlsmart.core.tasks import TaskRunner
from xlsmart.db.init import init_database
from xlsmart.db.session import Database
from xlsmart.llm.router import LLMRouter


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    llm: LLMRouter | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    database = database or Database(settings)
    llm = llm or LLMRouter(settings)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.database = database
    app.state.llm = llm
    app.state.task_runner = TaskRunner(database, settings=settings, llm=llm)

    origins = settings.cors_origin_list or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    init_database(settings, database)

    @app.get("/health")
    def health() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    app.include_router(functions_router)
    app.include_router(api_router)
    return app
