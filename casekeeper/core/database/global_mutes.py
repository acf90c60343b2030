"""
Casekeeper - Database Global Mute Operations
============================================

Registry of users muted across every guild. Only the record is kept
here; lifting a mute when it runs out is the platform's job.
"""

from datetime import timedelta
from typing import Optional, TYPE_CHECKING

from casekeeper.core.database.base import utcnow_iso
from casekeeper.core.database.models import GlobalMuteRecord

if TYPE_CHECKING:
    from casekeeper.core.database.manager import DatabaseManager


class GlobalMutesMixin:
    """Mixin for global mute registry operations."""

    def _upsert_global_mute(
        self: "DatabaseManager",
        tx,
        user_id: str,
        muted_by: str,
        duration_seconds: int,
        user_tag: Optional[str] = None,
        muted_by_tag: Optional[str] = None,
        reason: Optional[str] = None,
        duration: Optional[str] = None,
        case_id: Optional[str] = None,
    ) -> str:
        """
        Register (or replace) a global mute inside an open transaction.

        Returns:
            The expiry timestamp that was stored.
        """
        expires_at = utcnow_iso(offset=timedelta(seconds=duration_seconds))
        tx.execute(
            """INSERT OR REPLACE INTO global_mutes
               (user_id, user_tag, muted_by, muted_by_tag, reason,
                duration, duration_seconds, expires_at, case_id, muted_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                str(user_id), user_tag, str(muted_by), muted_by_tag, reason,
                duration, int(duration_seconds), expires_at, case_id, utcnow_iso(),
            )
        )
        return expires_at

    def get_global_mute(self: "DatabaseManager", user_id: str) -> Optional[GlobalMuteRecord]:
        """Get the latest mute entry for a user, expired or not."""
        row = self.fetchone("SELECT * FROM global_mutes WHERE user_id = ?", (str(user_id),))
        return dict(row) if row else None

    def get_active_global_mute(self: "DatabaseManager", user_id: str) -> Optional[GlobalMuteRecord]:
        """Get a user's mute entry only while it has not expired."""
        row = self.fetchone(
            "SELECT * FROM global_mutes WHERE user_id = ? AND expires_at > ?",
            (str(user_id), utcnow_iso())
        )
        return dict(row) if row else None


__all__ = ["GlobalMutesMixin"]
