"""
Casekeeper - Database Global Ban Operations
===========================================

Registry of users banned across every guild.
"""

from typing import List, Optional, TYPE_CHECKING

from casekeeper.core.database.base import utcnow_iso
from casekeeper.core.database.models import GlobalBanRecord

if TYPE_CHECKING:
    from casekeeper.core.database.manager import DatabaseManager


class GlobalBansMixin:
    """Mixin for global ban registry operations."""

    def _upsert_global_ban(
        self: "DatabaseManager",
        tx,
        user_id: str,
        banned_by: str,
        user_tag: Optional[str] = None,
        banned_by_tag: Optional[str] = None,
        reason: Optional[str] = None,
        case_id: Optional[str] = None,
    ) -> None:
        """Register (or re-register) a global ban inside an open transaction."""
        tx.execute(
            """INSERT OR REPLACE INTO global_bans
               (user_id, user_tag, banned_by, banned_by_tag, reason, case_id, banned_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (str(user_id), user_tag, str(banned_by), banned_by_tag, reason, case_id, utcnow_iso())
        )

    def _remove_global_ban(self: "DatabaseManager", tx, user_id: str) -> bool:
        """Remove a global ban inside an open transaction. Returns True if one existed."""
        tx.execute("DELETE FROM global_bans WHERE user_id = ?", (str(user_id),))
        return tx.rowcount > 0

    def get_global_ban(self: "DatabaseManager", user_id: str) -> Optional[GlobalBanRecord]:
        """Get the registry entry for a user, or None."""
        row = self.fetchone("SELECT * FROM global_bans WHERE user_id = ?", (str(user_id),))
        return dict(row) if row else None

    def is_globally_banned(self: "DatabaseManager", user_id: str) -> bool:
        """Check whether a user is in the global ban registry."""
        return self.get_global_ban(user_id) is not None

    def list_global_bans(self: "DatabaseManager", limit: Optional[int] = None) -> List[GlobalBanRecord]:
        """Get registered global bans, most recent first."""
        query = "SELECT * FROM global_bans ORDER BY banned_at DESC, id DESC"
        params: tuple = ()
        if limit is not None:
            query += " LIMIT ?"
            params = (int(limit),)
        return [dict(row) for row in self.fetchall(query, params)]

    def count_global_bans(self: "DatabaseManager") -> int:
        """Number of users in the global ban registry."""
        row = self.fetchone("SELECT COUNT(*) AS total FROM global_bans")
        return int(row["total"]) if row else 0


__all__ = ["GlobalBansMixin"]
