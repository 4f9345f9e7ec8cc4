"""Logging configuration."""

import logging
import sys
from typing import Optional

from cascade_ledger.config.settings import Settings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _level(name: str) -> int:
    return getattr(logging, name.upper())


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure application logging.

    The reconciliation loop logs every iteration and rejected proposal at
    DEBUG, so it takes its own level when ``reconciliation_log_level`` is set.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        level=_level(settings.log_level),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    if settings.reconciliation_log_level:
        logging.getLogger("cascade_ledger.services.reconciliation").setLevel(
            _level(settings.reconciliation_log_level)
        )

    # SQL statement logging is opt-in
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.log_sql else logging.WARNING
    )
    logging.getLogger("uvicorn").setLevel(logging.INFO)
