"""
Casekeeper - Database Case Edit Operations
==========================================

Append-only ledger of field-level case edits.
"""

from typing import Any, List, Optional, TYPE_CHECKING

from casekeeper.core.database.base import utcnow_iso
from casekeeper.core.database.models import CaseEditRecord
from casekeeper.utils.case_ids import normalize_case_id

if TYPE_CHECKING:
    from casekeeper.core.database.manager import DatabaseManager


def _as_text(value: Any) -> Optional[str]:
    """Edit values are stored as their string form; None stays NULL."""
    return None if value is None else str(value)


class EditsMixin:
    """Mixin for case edit history operations."""

    def _record_case_edit(
        self: "DatabaseManager",
        tx,
        case_id: str,
        editor_id: str,
        editor_tag: Optional[str],
        field: str,
        old_value: Any,
        new_value: Any,
        edit_reason: str,
        created_at: Optional[str] = None,
    ) -> None:
        """Append one edit row inside an open transaction."""
        tx.execute(
            """INSERT INTO case_edits
               (case_id, editor_id, editor_tag, field_changed,
                old_value, new_value, edit_reason, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                normalize_case_id(case_id),
                str(editor_id),
                editor_tag,
                field,
                _as_text(old_value),
                _as_text(new_value),
                edit_reason,
                created_at or utcnow_iso(),
            )
        )

    def record_case_edit(
        self: "DatabaseManager",
        case_id: str,
        editor_id: str,
        editor_tag: Optional[str],
        field: str,
        old_value: Any,
        new_value: Any,
        edit_reason: str,
    ) -> None:
        """
        Append one edit row in its own transaction.

        Prefer CaseService.edit, which records the edit and applies the
        change together.
        """
        with self.transaction() as tx:
            self._record_case_edit(
                tx, case_id, editor_id, editor_tag,
                field, old_value, new_value, edit_reason,
            )

    def get_case_edits(self: "DatabaseManager", case_id: str) -> List[CaseEditRecord]:
        """Get every edit recorded for a case, newest first."""
        rows = self.fetchall(
            """SELECT * FROM case_edits
               WHERE case_id = ?
               ORDER BY created_at DESC, id DESC""",
            (normalize_case_id(case_id),)
        )
        return [dict(row) for row in rows]


__all__ = ["EditsMixin"]
