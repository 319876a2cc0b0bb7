"""
Centralized configuration with environment variable overrides.

Engine-wide knobs (slot granularity, storage timeouts, honeypot field name,
default locale) are configurable here. Per-organization booking settings
such as buffers and confirmation flags come from the organization record,
not from the environment.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation settings."""

    slot_step_minutes: int = _safe_int("SLOT_STEP_MINUTES", "30")
    default_locale: str = os.getenv("DEFAULT_LOCALE", "en")


@dataclass(frozen=True)
class StorageConfig:
    """Limits applied to collaborator I/O."""

    timeout_seconds: float = _safe_float("STORAGE_TIMEOUT_SECONDS", "10.0")


@dataclass(frozen=True)
class PublicChannelConfig:
    """Public booking page settings."""

    honeypot_field: str = os.getenv("HONEYPOT_FIELD", "_hp")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    public: PublicChannelConfig = field(default_factory=PublicChannelConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    engine_name: str = os.getenv("ENGINE_NAME", "booking-engine")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    step = config.scheduling.slot_step_minutes
    if not 1 <= step <= 1440:
        raise ValueError(
            f"SLOT_STEP_MINUTES must be between 1 and 1440, got {step}"
        )
    if config.storage.timeout_seconds <= 0:
        raise ValueError(
            f"STORAGE_TIMEOUT_SECONDS must be > 0, got {config.storage.timeout_seconds}"
        )
    if not config.public.honeypot_field.strip():
        raise ValueError("HONEYPOT_FIELD must not be empty")
    if not config.scheduling.default_locale.strip():
        raise ValueError("DEFAULT_LOCALE must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.engine_name)
    return config


# Singleton instance
settings = load_config()
