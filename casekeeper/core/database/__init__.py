"""
Casekeeper - Database Package
=============================

SQLite storage for cases, counters, edit history, the audit log and the
global ban and mute registries.
"""

from casekeeper.core.database.manager import DatabaseManager, get_db, reset_db
from casekeeper.core.database.cases import NOT_VOIDED
from casekeeper.core.database.models import (
    CaseRecord,
    CaseEditRecord,
    AuditRecord,
    GlobalBanRecord,
    GlobalMuteRecord,
)

__all__ = [
    "DatabaseManager",
    "get_db",
    "reset_db",
    "NOT_VOIDED",
    "CaseRecord",
    "CaseEditRecord",
    "AuditRecord",
    "GlobalBanRecord",
    "GlobalMuteRecord",
]
