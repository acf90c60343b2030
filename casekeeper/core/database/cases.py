"""
Casekeeper - Database Case Operations Module
============================================

Case store primitives: insert, lookup, filtered listings and partial
updates.
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

from casekeeper.core.constants import STATUS_ACTIVE
from casekeeper.core.database.base import utcnow_iso
from casekeeper.core.database.models import CaseRecord
from casekeeper.utils.case_ids import normalize_case_id, normalize_scope

if TYPE_CHECKING:
    import sqlite3
    from casekeeper.core.database.manager import DatabaseManager


# =============================================================================
# Shared Query Fragments
# =============================================================================

NOT_VOIDED = "voided_at IS NULL"
"""Exclusion rule shared by every listing and statistic."""

NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"

CASE_COLUMNS = (
    "case_id", "guild_id", "is_global", "user_id", "user_tag",
    "moderator_id", "moderator_tag", "action_type", "reason", "evidence",
    "duration", "points", "status", "created_at", "updated_at",
    "deleted_at", "deleted_by", "voided_at", "voided_by", "void_reason",
)

UPDATABLE_COLUMNS = frozenset({
    "reason", "evidence", "points", "status",
    "deleted_at", "deleted_by",
    "voided_at", "voided_by", "void_reason",
})
"""Columns update_case may touch. Subject, actor and action never change."""


def _row_to_case(row: Optional["sqlite3.Row"]) -> Optional[CaseRecord]:
    if row is None:
        return None
    case = dict(row)
    case["is_global"] = bool(case["is_global"])
    return case


class CasesMixin:
    """Mixin for case store operations."""

    # =========================================================================
    # Insert
    # =========================================================================

    def _insert_case(self: "DatabaseManager", tx, case: Dict[str, Any]) -> None:
        """Insert a case row inside an open transaction."""
        values = tuple(
            int(case[col]) if col == "is_global" else case.get(col)
            for col in CASE_COLUMNS
        )
        placeholders = ", ".join("?" for _ in CASE_COLUMNS)
        tx.execute(
            f"INSERT INTO cases ({', '.join(CASE_COLUMNS)}) VALUES ({placeholders})",
            values
        )

    def put_case(self: "DatabaseManager", case: Dict[str, Any]) -> CaseRecord:
        """
        Insert a fully built case.

        Raises:
            StorageFailure: STORAGE_DUPLICATE_CASE if the case ID exists.
        """
        case = dict(case)
        case["case_id"] = normalize_case_id(case["case_id"])
        now = utcnow_iso()
        case.setdefault("created_at", now)
        case.setdefault("updated_at", case["created_at"])
        case.setdefault("status", STATUS_ACTIVE)
        case.setdefault("points", 1)
        case.setdefault("is_global", False)

        with self.transaction() as tx:
            self._insert_case(tx, case)
            return self._fetch_case(tx, case["case_id"])

    # =========================================================================
    # Lookups
    # =========================================================================

    def _fetch_case(self: "DatabaseManager", tx, case_id: str) -> Optional[CaseRecord]:
        """Read a case inside an open transaction."""
        tx.execute("SELECT * FROM cases WHERE case_id = ?", (normalize_case_id(case_id),))
        return _row_to_case(tx.fetchone())

    def get_case(self: "DatabaseManager", case_id: str) -> Optional[CaseRecord]:
        """
        Get a case by its ID (case-insensitive).

        Returns:
            Case record, or None if no such case exists.
        """
        row = self.fetchone(
            "SELECT * FROM cases WHERE case_id = ?",
            (normalize_case_id(case_id),)
        )
        return _row_to_case(row)

    def list_user_cases(
        self: "DatabaseManager",
        guild_id: str,
        user_id: str,
        include_deleted: bool = False,
    ) -> List[CaseRecord]:
        """
        Get a user's cases in a guild, newest first.

        Args:
            guild_id: Guild ID (or GLOBAL).
            user_id: Subject user ID.
            include_deleted: Include soft-deleted cases. Voided cases are
                always excluded.
        """
        status_filter = NOT_VOIDED if include_deleted else "status = 'active'"
        rows = self.fetchall(
            f"""SELECT * FROM cases
                WHERE guild_id = ? AND user_id = ? AND {status_filter}
                {NEWEST_FIRST}""",
            (normalize_scope(guild_id), str(user_id))
        )
        return [_row_to_case(row) for row in rows]

    def list_deleted_user_cases(
        self: "DatabaseManager",
        guild_id: str,
        user_id: str,
    ) -> List[CaseRecord]:
        """Get a user's soft-deleted, non-voided cases, most recently deleted first."""
        rows = self.fetchall(
            f"""SELECT * FROM cases
                WHERE guild_id = ? AND user_id = ?
                AND deleted_at IS NOT NULL AND {NOT_VOIDED}
                ORDER BY deleted_at DESC, id DESC""",
            (normalize_scope(guild_id), str(user_id))
        )
        return [_row_to_case(row) for row in rows]

    def list_guild_cases(
        self: "DatabaseManager",
        guild_id: str,
        status: Optional[str] = None,
        action_type: Optional[str] = None,
        moderator_id: Optional[str] = None,
        include_voided: bool = False,
        limit: Optional[int] = None,
    ) -> List[CaseRecord]:
        """
        Get a guild's cases with optional equality filters, newest first.

        Args:
            guild_id: Guild ID (or GLOBAL).
            status: Only cases with this status.
            action_type: Only cases of this action type.
            moderator_id: Only cases created by this moderator.
            include_voided: Also return voided cases.
            limit: Maximum number of cases.
        """
        conditions = ["guild_id = ?"]
        params: List[Any] = [normalize_scope(guild_id)]

        if status is not None:
            conditions.append("status = ?")
            params.append(status)
        if action_type is not None:
            conditions.append("action_type = ?")
            params.append(action_type)
        if moderator_id is not None:
            conditions.append("moderator_id = ?")
            params.append(str(moderator_id))
        if not include_voided:
            conditions.append(NOT_VOIDED)

        query = f"SELECT * FROM cases WHERE {' AND '.join(conditions)} {NEWEST_FIRST}"
        if limit is not None:
            query += " LIMIT ?"
            params.append(int(limit))

        return [_row_to_case(row) for row in self.fetchall(query, tuple(params))]

    # =========================================================================
    # Updates
    # =========================================================================

    def _update_case(
        self: "DatabaseManager",
        tx,
        case_id: str,
        fields: Dict[str, Any],
        updated_at: Optional[str] = None,
    ) -> int:
        """
        Apply a partial update inside an open transaction and bump updated_at.

        Returns:
            Number of rows changed (0 if the case does not exist).

        Raises:
            ValueError: If a field is not an updatable column.
        """
        unknown = set(fields) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update case columns: {', '.join(sorted(unknown))}")

        assignments = [f"{column} = ?" for column in fields]
        assignments.append("updated_at = ?")
        params = list(fields.values()) + [updated_at or utcnow_iso(), normalize_case_id(case_id)]

        tx.execute(
            f"UPDATE cases SET {', '.join(assignments)} WHERE case_id = ?",
            tuple(params)
        )
        return tx.rowcount

    def update_case(
        self: "DatabaseManager",
        case_id: str,
        fields: Dict[str, Any],
    ) -> Optional[CaseRecord]:
        """
        Apply a partial update to a case.

        Returns:
            Updated case record, or None if the case does not exist.
        """
        with self.transaction() as tx:
            if not self._update_case(tx, case_id, fields):
                return None
            return self._fetch_case(tx, case_id)


__all__ = ["CasesMixin", "NOT_VOIDED", "NEWEST_FIRST", "UPDATABLE_COLUMNS"]
