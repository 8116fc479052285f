"""
Configuration and environment loading.

- Loads a `.env` file (if present) into the environment, then reads DRAUGHTSLINK_* variables.
- Exposes SETTINGS with the keys used across the project (advisor endpoint, rule flags, logging).
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Callable

from dotenv import load_dotenv

load_dotenv()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _get(name: str, default: Any, cast: Callable[[Any], Any] | None = None) -> Any:
    env = os.environ.get(name)
    if env is not None:
        return cast(env) if cast else env
    return default


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # Advisor (OpenAI-compatible wire format, base URL optional)
    advisor_api_key: str
    advisor_base_url: str
    advisor_model: str
    advisor_timeout_s: float
    advisor_retries: int

    # Rules / protocol
    strict_capture: bool
    validate_inbound_moves: bool

    # Transport / logging
    port: int
    log_level: str


def load_settings() -> Settings:
    """Read the environment again (useful in tests that monkeypatch env vars)."""
    return Settings(
        advisor_api_key=_get("DRAUGHTSLINK_ADVISOR_API_KEY", ""),
        advisor_base_url=_get("DRAUGHTSLINK_ADVISOR_BASE_URL", ""),
        advisor_model=_get("DRAUGHTSLINK_ADVISOR_MODEL", "gpt-4o-mini"),
        advisor_timeout_s=_get("DRAUGHTSLINK_ADVISOR_TIMEOUT_S", 20.0, cast=float),
        advisor_retries=_get("DRAUGHTSLINK_ADVISOR_RETRIES", 1, cast=int),
        strict_capture=_get("DRAUGHTSLINK_STRICT_CAPTURE", False, cast=_as_bool),
        validate_inbound_moves=_get(
            "DRAUGHTSLINK_VALIDATE_INBOUND", True, cast=_as_bool
        ),
        port=_get("DRAUGHTSLINK_PORT", 9520, cast=int),
        log_level=_get("DRAUGHTSLINK_LOG_LEVEL", "INFO"),
    )


SETTINGS = load_settings()


def configure_logging(level: str | None = None) -> None:
    """Basic logging setup for scripts / the UI process. Libraries only ever call logging.getLogger."""
    logging.basicConfig(
        level=(level or SETTINGS.log_level).upper(),
        format=LOG_FORMAT,
    )
