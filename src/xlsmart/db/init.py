from __future__ import annotations

from xlsmart.config import Settings
from xlsmart.db.base import Base
from xlsmart.db.session import Database
from xlsmart.db import models  # noqa: F401


def ensure_data_directories(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def init_database(settings: Settings, database: Database) -> dict[str, list[str]]:
    ensure_data_directories(settings)
    Base.metadata.create_all(bind=database.engine)
    return {"tables": sorted(Base.metadata.tables)}
