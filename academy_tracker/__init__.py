"""academy_tracker package."""

import logging
from importlib import metadata
from typing import Any

from .env import get_env

try:
    __version__ = metadata.version("academy-tracker")
except metadata.PackageNotFoundError:  # pragma: no cover - fallback for local edits
    __version__ = "0.0.0"

__all__ = ["app", "__version__"]


def _configure_logger() -> logging.Logger:
    logger = logging.getLogger(__name__)
    level_name = get_env("LOG_LEVEL")
    if level_name:
        logger.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    return logger


_configure_logger()


def __getattr__(name: str) -> Any:  # pragma: no cover - exercised indirectly
    if name == "app":
        from .cli import app

        return app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
