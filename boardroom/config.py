"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_DB_PATH = DATA_DIR / "boardroom.db"
DEFAULT_LOG_PATH = LOGS_DIR / "boardroom.log"

# Agent defaults (seconds unless noted)
DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_MAX_CONCURRENT_TASKS = 3
DEFAULT_HANDLER_TIMEOUT = 300.0


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def _parse_timeout(value: str | None) -> float | None:
    """Parse a timeout env value. Empty means default, 0 or 'none' disables it."""
    if value is None or value.strip() == "":
        return DEFAULT_HANDLER_TIMEOUT
    if value.strip().lower() in ("0", "none", "off"):
        return None
    return float(value)


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings read from the environment."""

    db_path: PathLike = DEFAULT_DB_PATH
    log_level: str = "INFO"
    api_host: str = "localhost"
    api_port: int = 8000
    handler_timeout: float | None = DEFAULT_HANDLER_TIMEOUT
    auto_start: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""
        return cls(
            db_path=resolve_db_path(os.getenv("DATABASE_URL")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            api_host=os.getenv("API_HOST", "localhost"),
            api_port=int(os.getenv("API_PORT", "8000")),
            handler_timeout=_parse_timeout(os.getenv("BOARDROOM_HANDLER_TIMEOUT")),
            auto_start=_parse_bool(os.getenv("BOARDROOM_AUTO_START")),
        )
