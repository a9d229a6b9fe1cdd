"""
Logger setup for the newsroom learning service.

Every module logs through get_logger(__name__). The first call attaches one
stream handler to the root logger; the level for all newsroom loggers comes
from NEWSROOM_LOG_LEVEL (default INFO) and is re-read on each call, so tests
and the uvicorn entry point agree on verbosity.
"""

from __future__ import annotations

import logging
import os
from typing import Final

_HANDLER_ATTACHED: bool = False
_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level() -> int:
    level_name = os.getenv("NEWSROOM_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger configured with a single stream handler."""
    global _HANDLER_ATTACHED

    level = _resolve_level()

    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root = logging.getLogger()
        root.addHandler(handler)
        root.setLevel(level)
        _HANDLER_ATTACHED = True
    else:
        logging.getLogger().setLevel(level)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
