"""
Casekeeper - Core Package
=========================

Core components: configuration, logging, error types and the case
database.

DESIGN:
    Core modules are singletons or global instances so every caller
    shares the same state:
    - get_config() returns the same Config instance
    - get_db() returns the same DatabaseManager instance
    - logger is a global TreeLogger instance
"""

# =============================================================================
# Core Imports
# =============================================================================

from .config import (
    Config,
    ConfigValidationError,
    get_config,
    reset_config,
    validate_and_log_config,
)

from .errors import (
    ErrorCode,
    CaseError,
    CaseNotFoundError,
    InvalidTransitionError,
    CaseValidationError,
    StorageFailure,
)

from .logger import logger, TreeLogger, LOG_TIMEZONE

from .database import DatabaseManager, get_db, reset_db


# =============================================================================
# Module Export
# =============================================================================

__all__ = [
    # Config
    "Config",
    "ConfigValidationError",
    "get_config",
    "reset_config",
    "validate_and_log_config",
    # Errors
    "ErrorCode",
    "CaseError",
    "CaseNotFoundError",
    "InvalidTransitionError",
    "CaseValidationError",
    "StorageFailure",
    # Logger
    "logger",
    "TreeLogger",
    "LOG_TIMEZONE",
    # Database
    "DatabaseManager",
    "get_db",
    "reset_db",
]
