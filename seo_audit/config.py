from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv
from rich.logging import RichHandler

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SEOAuditTool/1.0)"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    environment: str = "production"
    host: str = "0.0.0.0"
    port: int = 3000
    user_agent: str = DEFAULT_USER_AGENT
    primary_timeout_seconds: float = 30.0
    probe_timeout_seconds: float = 15.0
    head_timeout_seconds: float = 10.0
    image_sample_limit: int = 5
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            environment=os.getenv("APP_ENV", "production").strip().lower() or "production",
            host=os.getenv("HOST", "0.0.0.0").strip() or "0.0.0.0",
            port=_env_int("PORT", 3000),
            user_agent=os.getenv("SEO_AUDIT_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
            primary_timeout_seconds=_env_float("PRIMARY_TIMEOUT_SECONDS", 30.0),
            probe_timeout_seconds=_env_float("PROBE_TIMEOUT_SECONDS", 15.0),
            head_timeout_seconds=_env_float("HEAD_TIMEOUT_SECONDS", 10.0),
            image_sample_limit=max(0, _env_int("IMAGE_SAMPLE_LIMIT", 5)),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )


@lru_cache
def get_settings() -> Settings:
    """Settings read once from the environment (and .env, when present)."""
    load_dotenv()
    return Settings.from_env()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
