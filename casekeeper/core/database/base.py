"""
Casekeeper - Database Base Module
=================================

Helpers shared by the database mixins: timestamps, JSON decoding and
translation of sqlite3 errors into StorageFailure.
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator, Optional

from casekeeper.core.errors import ErrorCode, StorageFailure
from casekeeper.core.logger import logger


# =============================================================================
# Helper Functions
# =============================================================================

def utcnow_iso(offset: Optional[timedelta] = None) -> str:
    """
    Current UTC time as an ISO-8601 string with microseconds.

    Args:
        offset: Optional delta added to now (negative for the past).
    """
    now = datetime.now(timezone.utc)
    if offset is not None:
        now = now + offset
    return now.isoformat(timespec="microseconds")


def _safe_json_loads(value: Optional[str], default: Any = None) -> Any:
    """Safely parse JSON, returning default on error."""
    if not value:
        return default if default is not None else {}
    try:
        return json.loads(value)
    except (json.JSONDecodeError, ValueError):
        logger.warning(f"Corrupted JSON in database: {value[:50] if len(value) > 50 else value}")
        return default if default is not None else {}


@contextmanager
def storage_errors(operation: str, **context: Any) -> Iterator[None]:
    """
    Translate sqlite3 errors raised inside the block into StorageFailure.

    The original exception is chained. Integrity errors on cases.case_id
    get their own code so duplicates are distinguishable.

    Usage:
        with storage_errors("Insert Case", case_id=case_id):
            tx.execute("INSERT INTO cases ...", (...))
    """
    try:
        yield
    except sqlite3.Error as e:
        code = ErrorCode.STORAGE_FAILURE
        if isinstance(e, sqlite3.IntegrityError) and "cases.case_id" in str(e):
            code = ErrorCode.STORAGE_DUPLICATE_CASE

        details = [(key.replace("_", " ").title(), str(value)) for key, value in context.items()]
        logger.error(f"{operation} Failed", details + [
            ("Error", str(e)[:100]),
            ("Type", type(e).__name__),
        ])
        raise StorageFailure(
            code,
            details={"operation": operation, "error": str(e), **{k: str(v) for k, v in context.items()}},
        ) from e


__all__ = ["utcnow_iso", "_safe_json_loads", "storage_errors"]
