"""
QuestionBot - Configuration Module
==================================

Environment configuration and startup validation.

All values are read from the environment (``.env`` is loaded by main.py
before this module is imported) and fall back to defaults, so importing
this module never fails. Call :func:`validate_and_log_config` at startup
to reject a broken configuration.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from questionbot.core.logger import logger


# =============================================================================
# Paths
# =============================================================================

ROOT_DIR: Path = Path(__file__).parent.parent.parent
DATA_DIR: Path = ROOT_DIR / "data"


# =============================================================================
# Configuration Validation
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""
    valid: bool
    missing_required: list[str] = field(default_factory=list)
    missing_optional: list[str] = field(default_factory=list)
    invalid_format: list[tuple[str, str]] = field(default_factory=list)  # (var_name, reason)


REQUIRED_ENV_VARS: list[str] = [
    "DISCORD_TOKEN",
]

OPTIONAL_ENV_VARS: dict[str, str] = {
    "DATABASE_PATH": "SQLite database file",
    "README_PATH": "README used for release notes",
    "PORT": "Health check HTTP port",
    "DAILY_POST_HOUR": "Hour of the daily question",
    "DAILY_POST_MINUTE": "Minute of the daily question",
    "TIMEZONE": "Timezone of the daily question",
}

# (name, lowest, highest)
NUMERIC_ENV_VARS: list[tuple[str, int, int]] = [
    ("PORT", 1, 65535),
    ("DAILY_POST_HOUR", 0, 23),
    ("DAILY_POST_MINUTE", 0, 59),
]


def _valid_timezone(name: str) -> bool:
    try:
        ZoneInfo(name)
        return True
    except (ZoneInfoNotFoundError, ValueError):
        return False


def validate_config() -> ConfigValidationResult:
    """
    Validate all environment variables.

    Returns:
        ConfigValidationResult with validation status and any issues found.
    """
    result = ConfigValidationResult(valid=True)

    for var in REQUIRED_ENV_VARS:
        if not os.getenv(var):
            result.missing_required.append(var)
            result.valid = False

    for var in OPTIONAL_ENV_VARS:
        if not os.getenv(var):
            result.missing_optional.append(var)

    for var, low, high in NUMERIC_ENV_VARS:
        value = os.getenv(var)
        if not value:
            continue
        if not value.isdigit():
            result.invalid_format.append((var, "Must be a number"))
            result.valid = False
        elif not low <= int(value) <= high:
            result.invalid_format.append((var, f"Must be between {low} and {high}"))
            result.valid = False

    timezone_name = os.getenv("TIMEZONE")
    if timezone_name and not _valid_timezone(timezone_name):
        result.invalid_format.append(("TIMEZONE", "Unknown timezone"))
        result.valid = False

    return result


def validate_and_log_config() -> None:
    """
    Validate configuration and log results.

    Raises:
        ConfigValidationError: If required configuration is missing or malformed.
    """
    result = validate_config()

    for var in result.missing_required:
        logger.error("Missing Required Configuration", [
            ("Variable", var),
            ("Action", f"Add {var}=<value> to your .env file"),
        ])

    for var, reason in result.invalid_format:
        logger.error("Invalid Configuration Format", [
            ("Variable", var),
            ("Reason", reason),
        ])

    if result.missing_optional:
        logger.info("Using Default Configuration", [
            ("Variables", ", ".join(result.missing_optional)),
        ])

    if not result.valid:
        raise ConfigValidationError(
            f"Missing required config: {', '.join(result.missing_required) or 'none'}"
            + (f"; Invalid format: {', '.join(v for v, _ in result.invalid_format)}" if result.invalid_format else "")
        )

    logger.info("Configuration Validated Successfully", [
        ("Required", f"{len(REQUIRED_ENV_VARS)} OK"),
        ("Optional", f"{len(OPTIONAL_ENV_VARS) - len(result.missing_optional)}/{len(OPTIONAL_ENV_VARS)} configured"),
    ])


# =============================================================================
# Loaders
# =============================================================================

def _load_int(env_var: str, default: int) -> int:
    """Load an integer, falling back to ``default`` when unset or malformed."""
    value = os.getenv(env_var)
    if value and value.isdigit():
        return int(value)
    return default


def load_timezone() -> ZoneInfo:
    """Load the scheduling timezone from TIMEZONE."""
    name = os.getenv("TIMEZONE", "America/New_York")
    if not _valid_timezone(name):
        return ZoneInfo("America/New_York")
    return ZoneInfo(name)


def load_token() -> Optional[str]:
    """Load the Discord bot token from DISCORD_TOKEN."""
    return os.getenv("DISCORD_TOKEN") or None


# =============================================================================
# Settings
# =============================================================================

DATABASE_PATH: Path = Path(os.getenv("DATABASE_PATH", str(DATA_DIR / "questionbot.db")))
README_PATH: Path = Path(os.getenv("README_PATH", str(ROOT_DIR / "README.md")))

HEALTH_PORT: int = _load_int("PORT", 5000)

DAILY_POST_HOUR: int = _load_int("DAILY_POST_HOUR", 2)
DAILY_POST_MINUTE: int = _load_int("DAILY_POST_MINUTE", 0)
SCHEDULE_TZ: ZoneInfo = load_timezone()


# =============================================================================
# Time & Retry Constants
# =============================================================================

SCHEDULER_ERROR_RETRY: int = 300  # Scheduler retry delay on error (5 minutes)
SERVICE_INIT_TIMEOUT: float = 30.0


# =============================================================================
# Discord Limits & Delays
# =============================================================================

DISCORD_MESSAGE_LIMIT: int = 2000
REACTION_DELAY: float = 0.3  # Delay between adding reactions (seconds)
DM_READ_DELAY: float = 0.5  # Pause before "reading" a DM (seconds)
DM_TYPING_DELAY: float = 2.0  # Typing time before answering a DM (seconds)
SECRET_TYPING_DELAY: float = 5.0  # Typing time before the second secret message (seconds)


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    "ROOT_DIR",
    "DATA_DIR",
    "ConfigValidationError",
    "ConfigValidationResult",
    "validate_config",
    "validate_and_log_config",
    "load_timezone",
    "load_token",
    "DATABASE_PATH",
    "README_PATH",
    "HEALTH_PORT",
    "DAILY_POST_HOUR",
    "DAILY_POST_MINUTE",
    "SCHEDULE_TZ",
    "SCHEDULER_ERROR_RETRY",
    "SERVICE_INIT_TIMEOUT",
    "DISCORD_MESSAGE_LIMIT",
    "REACTION_DELAY",
    "DM_READ_DELAY",
    "DM_TYPING_DELAY",
    "SECRET_TYPING_DELAY",
]
