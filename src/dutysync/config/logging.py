"""Shared logging helpers for dutysync."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV_VAR = "DUTYSYNC_LOG_LEVEL"


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: the level
    defaults to ``DUTYSYNC_LOG_LEVEL`` (or INFO) and the format is terse enough for
    CLI output. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level if level is not None else level_from_env(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    # httpx logs every request at INFO, including the identity endpoint.
    logging.getLogger("httpx").setLevel(logging.WARNING)


def level_from_env(default: int = logging.INFO) -> int:
    raw = os.getenv(LOG_LEVEL_ENV_VAR)
    if not raw:
        return default
    value = logging.getLevelName(raw.strip().upper())
    return value if isinstance(value, int) else default
