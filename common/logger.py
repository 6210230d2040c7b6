"""
Logging setup shared by the pipeline, calibration and entry points.
"""

from __future__ import annotations

import logging
import os

ROOT_LOGGER = "heliotrope"
_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"

_configured = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
    level_name = os.environ.get("HELIOTROPE_LOG_LEVEL", "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under ``heliotrope.<name>``."""
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


__all__ = ["ROOT_LOGGER", "get_logger"]
