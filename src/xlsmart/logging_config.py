from __future__ import annotations

import logging

from xlsmart.config import Settings


_LOG_CONFIGURED = False


def configure_logging(settings: Settings) -> None:
    global _LOG_CONFIGURED
    if _LOG_CONFIGURED:
        return

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _LOG_CONFIGURED = True
