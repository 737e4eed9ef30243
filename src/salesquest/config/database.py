"""Where the incentive database lives."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env

DATABASE_URI_ENV: Final[str] = "DATABASE_URI"
DATA_DIR_ENV: Final[str] = "SALESQUEST_DATA_DIR"
DATABASE_FILENAME: Final[str] = "salesquest.db"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str

    @classmethod
    def sqlite_in(cls, data_dir: Path) -> DatabaseConfig:
        """SQLite file inside ``data_dir``; the directory is created on demand."""

        directory = data_dir.expanduser().resolve()
        directory.mkdir(parents=True, exist_ok=True)
        return cls(uri=f"sqlite+pysqlite:///{directory / DATABASE_FILENAME}")


def default_data_dir() -> Path:
    xdg_data_home = os.getenv("XDG_DATA_HOME")
    base = Path(xdg_data_home) if xdg_data_home else Path.home() / ".local" / "share"
    return base / "salesquest"


def get_database_config() -> DatabaseConfig:
    """``DATABASE_URI`` wins; otherwise a SQLite file under ``SALESQUEST_DATA_DIR``."""

    uri = optional_env(DATABASE_URI_ENV, "")
    if uri:
        return DatabaseConfig(uri=uri)
    data_dir = optional_env(DATA_DIR_ENV, "")
    return DatabaseConfig.sqlite_in(Path(data_dir) if data_dir else default_data_dir())
