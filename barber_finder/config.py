# File: barber_finder/config.py

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)

# --- Defaults ---
DEFAULT_REQUEST_TIMEOUT_SECONDS = 15
DEFAULT_PAGE_TOKEN_DELAY_SECONDS = 2.0 # Token needs time to propagate upstream
DEFAULT_EMPTY_PAGE_RETRY_DELAY_SECONDS = 1.5
DEFAULT_MAX_EMPTY_PAGE_ATTEMPTS = 3


def _env_number(name, default, cast, minimum=None):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid value for {name}: {raw!r}. Using default {default}.")
        return default
    if minimum is not None and value < minimum:
        logger.warning(f"Ignoring {name}={raw!r}: must be at least {minimum}. Using default {default}.")
        return default
    return value


def _env_float(name, default, minimum=None):
    return _env_number(name, default, float, minimum)


def _env_int(name, default, minimum=None):
    return _env_number(name, default, int, minimum)


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    page_token_delay_seconds: float = DEFAULT_PAGE_TOKEN_DELAY_SECONDS
    empty_page_retry_delay_seconds: float = DEFAULT_EMPTY_PAGE_RETRY_DELAY_SECONDS
    max_empty_page_attempts: int = DEFAULT_MAX_EMPTY_PAGE_ATTEMPTS
    log_level: str = "INFO"

    def require_api_key(self):
        """Return the API key or raise ConfigError before any request is made."""
        if not self.api_key:
            raise ConfigError("Missing GOOGLE_MAPS_API_KEY")
        return self.api_key


def load_settings(env_path=None):
    """
    Loads settings from the environment, reading a .env file first if present.

    Args:
        env_path (str or Path, optional): Explicit .env location. Defaults to the
                                          .env in the current working directory.

    Returns:
        Settings: Immutable settings snapshot.
    """
    if env_path is not None:
        load_dotenv(dotenv_path=Path(env_path))
    else:
        load_dotenv(find_dotenv(usecwd=True))

    api_key = os.getenv("GOOGLE_MAPS_API_KEY") or os.getenv("GOOGLE_API_KEY")
    settings = Settings(
        api_key=api_key or None,
        request_timeout_seconds=_env_float("REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT_SECONDS, minimum=1),
        page_token_delay_seconds=_env_float("PAGE_TOKEN_DELAY_SECONDS", DEFAULT_PAGE_TOKEN_DELAY_SECONDS, minimum=0),
        empty_page_retry_delay_seconds=_env_float(
            "EMPTY_PAGE_RETRY_DELAY_SECONDS", DEFAULT_EMPTY_PAGE_RETRY_DELAY_SECONDS, minimum=0
        ),
        max_empty_page_attempts=_env_int("MAX_EMPTY_PAGE_ATTEMPTS", DEFAULT_MAX_EMPTY_PAGE_ATTEMPTS, minimum=1),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
    logger.info(f"GOOGLE_MAPS_API_KEY loaded: {'Yes' if settings.api_key else 'No'}")
    return settings
