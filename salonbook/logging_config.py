# salonbook/logging_config.py
"""Logging setup for the API process."""
import logging
import sys

from salonbook.config import get_settings

# access lines, SQL echo and passlib's bcrypt version probe
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "passlib")


def setup_logging(verbose=True):
    settings = get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # booking, cancellation and penalty events are logged at LOG_LEVEL either way
    logging.getLogger("salonbook").setLevel(level)

    if not verbose:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
