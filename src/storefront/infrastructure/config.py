"""Runtime configuration.

Settings come from environment variables, optionally seeded from a
``.env`` file in the working directory.  Invalid values fail fast with
ConfigurationError when the settings are loaded.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from storefront.domain.model.catalog import DEFAULT_LOW_AVAILABILITY_THRESHOLD

# Resolve the default data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DATA_DIR = Path(__file__).resolve().parents[3] / "data"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""


@dataclass(frozen=True)
class Settings:
    database_url: str
    lock_timeout: float = 5.0
    low_availability_threshold: int = DEFAULT_LOW_AVAILABILITY_THRESHOLD
    log_level: str = "INFO"
    log_json: bool = False


def _get_float(env: dict, key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{key} must be positive, got {raw!r}")
    return value


def _get_int(env: dict, key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}") from exc
    if value < 0:
        raise ConfigurationError(f"{key} cannot be negative, got {raw!r}")
    return value


def _get_bool(env: dict, key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}")


def load_settings(env: dict | None = None, dotenv_path: Path | None = None) -> Settings:
    """Build Settings from ``env`` (defaults to ``os.environ``).

    A ``.env`` file is read first when present; real environment
    variables take precedence over it.
    """
    if env is None:
        load_dotenv(dotenv_path or Path(".env"), override=False)
        env = dict(os.environ)

    log_level = env.get("STOREFRONT_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigurationError(f"STOREFRONT_LOG_LEVEL must be one of {sorted(_LOG_LEVELS)}")

    database_url = env.get("STOREFRONT_DATABASE_URL", "").strip()
    if not database_url:
        database_url = f"sqlite:///{_DATA_DIR / 'storefront.db'}"

    return Settings(
        database_url=database_url,
        lock_timeout=_get_float(env, "STOREFRONT_LOCK_TIMEOUT", 5.0),
        low_availability_threshold=_get_int(
            env, "STOREFRONT_LOW_AVAILABILITY_THRESHOLD", DEFAULT_LOW_AVAILABILITY_THRESHOLD
        ),
        log_level=log_level,
        log_json=_get_bool(env, "STOREFRONT_LOG_JSON", False),
    )
