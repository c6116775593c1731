from __future__ import annotations

import os

PRIMARY_PREFIX = "ACADEMY_TRACKER_"


def get_env(name: str, default: str | None = None) -> str | None:
    """
    Resolve configuration environment variables.

    All settings share the ``ACADEMY_TRACKER_`` prefix, e.g.
    ``ACADEMY_TRACKER_DATA_DIR`` or ``ACADEMY_TRACKER_LOG_LEVEL``.
    """
    return os.getenv(f"{PRIMARY_PREFIX}{name}", default)
