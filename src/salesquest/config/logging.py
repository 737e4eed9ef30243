"""Shared logging helpers for salesquest."""

from __future__ import annotations

import logging

from .env import optional_env
from .errors import ConfigurationError

LOG_LEVEL_ENV = "SALESQUEST_LOG_LEVEL"


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once with sensible defaults.

    Parameters mirror ``logging.basicConfig`` with a simplified contract: we default
    to INFO level and a terse format suitable for CLI output. Pass ``force=True`` to
    reconfigure during tests or specialised entry points.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )


def get_log_level() -> int:
    name = optional_env(LOG_LEVEL_ENV, "INFO").upper()
    level = logging.getLevelNamesMapping().get(name)
    if level is None:
        raise ConfigurationError(f"{LOG_LEVEL_ENV} has unknown level {name!r}")
    return level
