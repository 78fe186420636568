"""
Environment-driven settings, resolved once at startup
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from .constants import (
    DEFAULT_INACTIVITY_THRESHOLD_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
    LOG_LEVEL,
)
from .errors import ConfigurationError


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite+aiosqlite:///chat.db"
    host: str = "0.0.0.0"
    port: int = 5000
    inactivity_threshold_seconds: float = DEFAULT_INACTIVITY_THRESHOLD_SECONDS
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS
    log_level: str = LOG_LEVEL
    cors_origins: Tuple[str, ...] = field(default=("*",))

    @property
    def inactivity_threshold_ms(self) -> int:
        return int(self.inactivity_threshold_seconds * 1000)


def _number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw.strip())
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from the environment

    A .env file in the working directory is merged into os.environ first
    unless an explicit mapping is given.

    Args:
        env: Mapping to read instead of os.environ

    Returns:
        Resolved Settings

    Raises:
        ConfigurationError: a value is malformed or out of range
    """
    if env is None:
        load_dotenv()
        env = os.environ

    threshold = _number(env, "INACTIVITY_THRESHOLD_SECONDS", DEFAULT_INACTIVITY_THRESHOLD_SECONDS, float)
    interval = _number(env, "SWEEP_INTERVAL_SECONDS", DEFAULT_SWEEP_INTERVAL_SECONDS, float)
    if threshold <= 0:
        raise ConfigurationError("INACTIVITY_THRESHOLD_SECONDS must be positive")
    if interval <= 0:
        raise ConfigurationError("SWEEP_INTERVAL_SECONDS must be positive")

    origins = tuple(
        origin.strip()
        for origin in env.get("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    )

    return Settings(
        database_url=env.get("DATABASE_URL") or Settings.database_url,
        host=env.get("HOST") or Settings.host,
        port=_number(env, "PORT", Settings.port, int),
        inactivity_threshold_seconds=threshold,
        sweep_interval_seconds=interval,
        log_level=(env.get("LOG_LEVEL") or LOG_LEVEL).upper(),
        cors_origins=origins or ("*",),
    )
