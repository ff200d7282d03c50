from __future__ import annotations

import logging
import os
from typing import Final

_HANDLER_ATTACHED: bool = False
_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level_name: str | None = None) -> int:
    name = (level_name or os.getenv("ACTIONQ_LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(level_name: str | None = None) -> None:
    """
    Attach the stream handler to the root logger once and set its level.

    The level comes from ACTIONQ_LOG_LEVEL on first use. Later calls change
    it only when level_name is given, so an explicit override sticks.
    """
    global _HANDLER_ATTACHED

    root = logging.getLogger()

    if not _HANDLER_ATTACHED:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        root.addHandler(handler)
        root.setLevel(_resolve_level(level_name))
        _HANDLER_ATTACHED = True
    elif level_name:
        root.setLevel(_resolve_level(level_name))


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; it inherits the root level."""
    configure_logging()
    return logging.getLogger(name)
