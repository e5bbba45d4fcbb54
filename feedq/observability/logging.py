"""Process-wide logging setup.

The first get_logger() call attaches one stream handler to the "feedq"
logger; module loggers propagate to it. FEEDQ_LOG_LEVEL is read on every
call so tests can change it with monkeypatch.
"""

from __future__ import annotations

import logging
import os

ROOT_LOGGER = "feedq"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _level_from_env() -> int:
    name = os.getenv("FEEDQ_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))
        root.addHandler(handler)
    root.setLevel(_level_from_env())
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger for a FeedQ module, e.g. get_logger(__name__)."""
    root = _configure_root()
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return root.getChild(name)
