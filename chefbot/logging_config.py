# chefbot/logging_config.py
from __future__ import annotations

import logging
import os
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Libraries that log every HTTP call / SQL statement at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "openai", "sqlalchemy.engine", "uvicorn.access")


def _resolve_level(level: Optional[str]) -> str:
    name = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    return name if isinstance(logging.getLevelName(name), int) else "INFO"


def setup_logging(level: Optional[str] = None) -> str:
    """
    Point the `chefbot` loggers at stdout. Called from the app lifespan;
    `level` falls back to LOG_LEVEL, then INFO. Returns the level used.
    """
    name = _resolve_level(level)

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(handler)
    root.setLevel(name)
    logging.getLogger("chefbot").setLevel(name)

    quiet_level = logging.DEBUG if name == "DEBUG" else logging.WARNING
    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(quiet_level)

    return name
