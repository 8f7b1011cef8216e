"""Taskboard configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from taskboard.config_utils import env_flag, env_value


@dataclass(frozen=True)
class TaskboardConfig:
    """Configuration for the task store and the app around it.

    Environment variables:
    - TASKBOARD_DATABASE_URL: Taskboard-specific database URL
    - DATABASE_URL: Shared database URL (used when the above is unset)
    - OWNER_OPEN_ID: External identity that is always upserted as admin
    - TASKBOARD_SQL_ECHO: Echo SQL statements (default: false)
    - TASKBOARD_LOG_LEVEL: Console log level (default: INFO)
    - TASKBOARD_LOG_DIR: Directory for a full debug log file (optional)

    There is no fallback database: without a URL
    reads return empty results and writes fail.
    """

    database_url: Optional[str]
    owner_open_id: Optional[str]
    echo_sql: bool
    log_level: str
    log_dir: Optional[str]

    @classmethod
    def from_env(cls) -> "TaskboardConfig":
        return cls(
            database_url=env_value("TASKBOARD_DATABASE_URL", "DATABASE_URL"),
            owner_open_id=env_value("OWNER_OPEN_ID"),
            echo_sql=env_flag("TASKBOARD_SQL_ECHO"),
            log_level=(env_value("TASKBOARD_LOG_LEVEL") or "INFO").upper(),
            log_dir=env_value("TASKBOARD_LOG_DIR"),
        )


# Global config instance
_config: Optional[TaskboardConfig] = None


def get_config() -> TaskboardConfig:
    """Get the taskboard configuration (cached)."""
    global _config
    if _config is None:
        _config = TaskboardConfig.from_env()
    return _config


def reset_config() -> None:
    """Forget the cached configuration so the environment is read again."""
    global _config
    _config = None
