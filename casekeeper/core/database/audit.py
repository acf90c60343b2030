"""
Casekeeper - Database Audit Log Operations
==========================================

Transition log: one row per case create, edit, delete, restore and void.
"""

import json
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from casekeeper.core.database.base import _safe_json_loads, utcnow_iso
from casekeeper.core.database.models import AuditRecord
from casekeeper.utils.case_ids import normalize_case_id

if TYPE_CHECKING:
    from casekeeper.core.database.manager import DatabaseManager


class AuditMixin:
    """Mixin for case audit log operations."""

    def _record_audit(
        self: "DatabaseManager",
        tx,
        action: str,
        case_id: str,
        scope: str,
        actor_id: Optional[str] = None,
        actor_tag: Optional[str] = None,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        created_at: Optional[str] = None,
    ) -> None:
        """Append one audit row inside an open transaction."""
        tx.execute(
            """INSERT INTO case_audit_log
               (action, case_id, scope, actor_id, actor_tag,
                from_status, to_status, details, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                action,
                normalize_case_id(case_id),
                str(scope),
                str(actor_id) if actor_id is not None else None,
                actor_tag,
                from_status,
                to_status,
                json.dumps(details) if details else None,
                created_at or utcnow_iso(),
            )
        )

    def record_audit(
        self: "DatabaseManager",
        action: str,
        case_id: str,
        scope: str,
        actor_id: Optional[str] = None,
        actor_tag: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Append an audit row that has no status change (e.g. propagation outcome)."""
        with self.transaction() as tx:
            self._record_audit(
                tx, action, case_id, scope,
                actor_id=actor_id, actor_tag=actor_tag, details=details,
            )

    def get_case_audit_trail(self: "DatabaseManager", case_id: str) -> List[AuditRecord]:
        """Get the audit log for a case, newest first."""
        rows = self.fetchall(
            """SELECT * FROM case_audit_log
               WHERE case_id = ?
               ORDER BY created_at DESC, id DESC""",
            (normalize_case_id(case_id),)
        )
        records = []
        for row in rows:
            record = dict(row)
            record["details"] = _safe_json_loads(record["details"], {})
            records.append(record)
        return records


__all__ = ["AuditMixin"]
