from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from xlsmart.db.repositories import Repository

logger = logging.getLogger(__name__)


def clear_database(session: Session, *, include_standard_roles: bool = False) -> dict[str, Any]:
    """Delete everything derived from uploads and reset employee assignments."""
    repo = Repository(session)
    logger.warning("Clearing derived tables include_standard_roles=%s", include_standard_roles)
    try:
        repo.clear_derived_tables(include_standard_roles=include_standard_roles)
    except Exception:
        session.rollback()
        raise
    counts = repo.table_counts()
    logger.info("Cleanup completed: %s", counts)
    return {"finalCounts": counts}
