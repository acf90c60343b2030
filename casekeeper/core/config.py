"""
Casekeeper - Configuration Module
=================================

Settings for the case store, read once from the environment.

DESIGN:
    Everything tunable lives on one Config dataclass, built by
    load_config() from environment variables (a .env file is read first
    when present) and cached by get_config().

    Rules:
    - A bad number is not fatal: it falls back to its default, or is
      clamped into range, with a warning
    - A bad identifier prefix is fatal, because it would change every
      case ID the store hands out
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from casekeeper.core.constants import (
    GLOBAL_SCOPE,
    PROPAGATION_CONCURRENCY,
    PROPAGATION_TIMEOUT,
)


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class Config:
    """
    Case store settings.

    Attributes:
        db_path: SQLite database file (CASES_DB_PATH).
        case_prefix: Prefix of per-guild case IDs (CASE_PREFIX).
        global_prefix: Prefix of cross-guild case IDs (GLOBAL_CASE_PREFIX).
        case_number_width: Zero padding of the sequence number.
        default_warn_points: Points a warn gets when none are given.
        propagation_concurrency: Platform calls in flight per global action.
        propagation_timeout: Seconds allowed per guild for a platform call.
        error_webhook_url: Discord webhook receiving error alerts.
        strict_soft_delete: Refuse to delete an already deleted case.
    """

    db_path: Path = Path("data/cases.db")
    case_prefix: str = "CASE"
    global_prefix: str = GLOBAL_SCOPE
    case_number_width: int = 4
    default_warn_points: int = 1
    propagation_concurrency: int = PROPAGATION_CONCURRENCY
    propagation_timeout: float = PROPAGATION_TIMEOUT
    error_webhook_url: Optional[str] = None
    strict_soft_delete: bool = True


class ConfigValidationError(Exception):
    """A setting is present but cannot be used."""


# =============================================================================
# Environment Readers
# =============================================================================

_PREFIX_PATTERN = re.compile(r"^[A-Z]+$")


def _warn(message: str) -> None:
    # Imported late: the logger module reads its own settings at import
    from casekeeper.core.logger import logger
    logger.warning(message)


def _env_int(name: str, default: int, low: int, high: int) -> int:
    """Integer setting, clamped to [low, high]; default when unset or garbage."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        _warn(f"Config {name}={raw!r} is not a number, using {default}")
        return default
    clamped = min(max(value, low), high)
    if clamped != value:
        _warn(f"Config {name}={value} outside {low}-{high}, using {clamped}")
    return clamped


def _env_float(name: str, default: float) -> float:
    """Positive float setting; default when unset, garbage or not positive."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        value = 0.0
    if value <= 0:
        _warn(f"Config {name}={raw!r} must be a positive number, using {default}")
        return default
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def _env_prefix(name: str, default: str) -> str:
    """
    Case ID prefix setting, upper-cased.

    Raises:
        ConfigValidationError: If the prefix is not letters only.
    """
    raw = os.getenv(name)
    if not raw:
        return default
    prefix = raw.strip().upper()
    if not _PREFIX_PATTERN.match(prefix):
        raise ConfigValidationError(f"{name}={raw!r} must contain letters only")
    return prefix


def _env_url(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if not raw:
        return None
    if not raw.startswith(("https://", "http://")):
        _warn(f"Config {name} is not an http(s) URL, ignoring")
        return None
    return raw


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config() -> Config:
    """
    Build a Config from the environment.

    Raises:
        ConfigValidationError: If a prefix is malformed, or both scopes
            would share one prefix.
    """
    load_dotenv()

    case_prefix = _env_prefix("CASE_PREFIX", "CASE")
    global_prefix = _env_prefix("GLOBAL_CASE_PREFIX", GLOBAL_SCOPE)
    if case_prefix == global_prefix:
        raise ConfigValidationError(
            f"CASE_PREFIX and GLOBAL_CASE_PREFIX are both {case_prefix!r}; they must differ"
        )

    return Config(
        db_path=Path(os.getenv("CASES_DB_PATH") or "data/cases.db"),
        case_prefix=case_prefix,
        global_prefix=global_prefix,
        case_number_width=_env_int("CASE_NUMBER_WIDTH", 4, 4, 10),
        default_warn_points=_env_int("DEFAULT_WARN_POINTS", 1, 1, 100),
        propagation_concurrency=_env_int(
            "PROPAGATION_CONCURRENCY", PROPAGATION_CONCURRENCY, 1, 50
        ),
        propagation_timeout=_env_float("PROPAGATION_TIMEOUT", PROPAGATION_TIMEOUT),
        error_webhook_url=_env_url("ERROR_WEBHOOK_URL"),
        strict_soft_delete=_env_bool("STRICT_SOFT_DELETE", True),
    )


# =============================================================================
# Global Config Instance
# =============================================================================

_config: Optional[Config] = None


def get_config() -> Config:
    """
    Cached configuration, loaded on first call.

    Raises:
        ConfigValidationError: From load_config() on the first call.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration; the next get_config() reloads."""
    global _config
    _config = None


def validate_and_log_config() -> Config:
    """
    Load the configuration, point the logger's alerts at the webhook and
    log the effective settings.

    Raises:
        ConfigValidationError: If configuration is invalid.
    """
    from casekeeper.core.logger import logger

    config = get_config()
    logger.set_webhook(config.error_webhook_url)

    logger.tree("Case Store Configuration", [
        ("Database", str(config.db_path)),
        ("Prefixes", f"{config.case_prefix} / {config.global_prefix}"),
        ("Number Width", str(config.case_number_width)),
        ("Default Warn Points", str(config.default_warn_points)),
        ("Strict Soft Delete", "Yes" if config.strict_soft_delete else "No"),
        ("Propagation", f"{config.propagation_concurrency} at a time, {config.propagation_timeout:g}s each"),
        ("Error Webhook", "Enabled" if config.error_webhook_url else "Disabled"),
    ], emoji="⚙️")

    return config


__all__ = [
    "Config",
    "ConfigValidationError",
    "load_config",
    "get_config",
    "reset_config",
    "validate_and_log_config",
]
