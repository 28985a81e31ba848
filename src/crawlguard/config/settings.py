"""
Runtime settings.

Read from a SOPS-encrypted ``config.enc.yaml`` when present, otherwise
from CRAWLGUARD_* environment variables. Example file layout:

    storage:
      backend: sqlite
      sqlite_db_path: data/crawlguard.db
    logging:
      level: INFO
    retention:
      request_log_days: 90
    api:
      base_url: https://api.aicrawlerguard.com
"""

import logging
import os
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from .constants import DEFAULT_RETENTION_DAYS

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

DEFAULT_DB_PATH = "data/crawlguard.db"
DEFAULT_API_BASE_URL = "https://api.aicrawlerguard.com"
DEFAULT_CONFIG_PATH = Path("config.enc.yaml")

PAYMENT_PATH = "/api/v1/wordpress/api/payment"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={raw!r}")
        return default


@dataclass
class Settings:
    """Where the request log lives, how long it is kept and where payments go."""

    storage_backend: str = "sqlite"
    sqlite_db_path: str = DEFAULT_DB_PATH
    log_level: str = "INFO"
    request_log_retention_days: int = DEFAULT_RETENTION_DAYS
    api_base_url: str = DEFAULT_API_BASE_URL

    @property
    def payment_endpoint(self) -> str:
        return self.api_base_url.rstrip("/") + PAYMENT_PATH

    def validate(self) -> list[str]:
        """Return a message per invalid value; empty when all is well."""
        problems = []
        if self.storage_backend != "sqlite":
            problems.append(
                f"storage.backend '{self.storage_backend}' is not available, use sqlite"
            )
        if not self.sqlite_db_path:
            problems.append("storage.sqlite_db_path must not be empty")
        if self.log_level.upper() not in LOG_LEVELS:
            problems.append(
                f"logging.level '{self.log_level}' is not one of {'/'.join(LOG_LEVELS)}"
            )
        if self.request_log_retention_days < 1:
            problems.append(
                "retention.request_log_days must be at least 1, "
                f"got {self.request_log_retention_days}"
            )
        if not self.api_base_url.startswith(("http://", "https://")):
            problems.append(f"api.base_url '{self.api_base_url}' is not an http(s) URL")
        return problems

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> "Settings":
        """Build from the nested mapping of a decrypted config file."""
        storage = config.get("storage") or {}
        retention = config.get("retention") or {}

        return cls(
            storage_backend=storage.get("backend", "sqlite"),
            sqlite_db_path=storage.get("sqlite_db_path", DEFAULT_DB_PATH),
            log_level=str((config.get("logging") or {}).get("level", "INFO")).upper(),
            request_log_retention_days=int(
                retention.get("request_log_days", DEFAULT_RETENTION_DAYS)
            ),
            api_base_url=(config.get("api") or {}).get("base_url", DEFAULT_API_BASE_URL),
        )

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            sqlite_db_path=os.environ.get("CRAWLGUARD_DB_PATH", DEFAULT_DB_PATH),
            log_level=os.environ.get("CRAWLGUARD_LOG_LEVEL", "INFO").upper(),
            request_log_retention_days=_env_int(
                "CRAWLGUARD_RETENTION_DAYS", DEFAULT_RETENTION_DAYS
            ),
            api_base_url=os.environ.get("CRAWLGUARD_API_BASE_URL", DEFAULT_API_BASE_URL),
        )


@lru_cache
def get_settings(config_path: Optional[str] = None) -> Settings:
    """
    Settings for this process, cached per ``config_path``.

    An unreadable config file is logged and the environment is used
    instead. Invalid values are logged as warnings; callers that must not
    run with them check validate() themselves.
    """
    settings = _load_settings(Path(config_path) if config_path else DEFAULT_CONFIG_PATH)
    for problem in settings.validate():
        logger.warning(f"Invalid setting: {problem}")
    return settings


def _load_settings(path: Path) -> Settings:
    if not path.exists():
        return Settings.from_env()

    from .sops_loader import decrypt_sops_file

    try:
        return Settings.from_dict(decrypt_sops_file(path))
    except (RuntimeError, ValueError) as e:
        logger.warning(f"Config {path} not loaded ({e}); using environment")
        return Settings.from_env()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
