"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
project-level configuration for the session store (capacity, TTL,
eviction policy, value ceiling), the expiry sweeper and logging.
"""

from __future__ import annotations

import os

from core.models import StoreConfig


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# Expiry sweeper
SESSION_SWEEP_INTERVAL = _env_float("SESSION_SWEEP_INTERVAL", 60.0)

# Refresh a session's TTL whenever it is loaded
SESSION_TOUCH_ON_ACCESS = _env_bool("SESSION_TOUCH_ON_ACCESS", True)

# Logging
LOG_LEVEL = _env_str("LOG_LEVEL", "INFO").upper()


def store_config_from_env() -> StoreConfig:
    """Build a validated StoreConfig from SESSION_* variables.

    Read at call time so that a re-initialised store picks up new values.
    Raises ConfigurationError for an invalid capacity or policy.
    """
    defaults = StoreConfig()
    config = StoreConfig(
        max_entries=_env_int("SESSION_MAX_ENTRIES", defaults.max_entries),
        default_ttl_seconds=_env_float("SESSION_TTL_SECONDS", defaults.default_ttl_seconds),
        eviction_policy=_env_str("SESSION_EVICTION_POLICY", defaults.eviction_policy).lower(),
        max_value_bytes=_env_int("SESSION_MAX_VALUE_BYTES", defaults.max_value_bytes),
    )
    config.validate()
    return config
