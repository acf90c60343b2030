"""
Casekeeper - Case Queries and Reporting
=======================================

Read-only views over the case store. Voided cases are excluded
everywhere unless a caller explicitly asks for them.
"""

from typing import TYPE_CHECKING, List, Optional

from casekeeper.core.constants import STATS_WINDOW_DAYS, STATUS_VOIDED, TEAM_STATS_LIMIT
from casekeeper.core.database.models import AuditRecord, CaseEditRecord, CaseRecord
from casekeeper.core.logger import logger
from casekeeper.utils.case_ids import normalize_case_id, normalize_scope

from .models import (
    ActionBreakdown,
    GuildStats,
    ModeratorStats,
    TeamMemberStats,
    WeeklyDashboard,
)

if TYPE_CHECKING:
    from .service import CaseService


class QueriesMixin:
    """Mixin for case lookups, listings and statistics."""

    # =========================================================================
    # Lookups
    # =========================================================================

    def get(self: "CaseService", case_id: str) -> Optional[CaseRecord]:
        """Get a case by ID (case-insensitive). Returns None if not found."""
        if not normalize_case_id(case_id):
            return None
        return self.db.get_case(case_id)

    def list_by_user(
        self: "CaseService",
        guild_id: str,
        user_id: str,
        include_deleted: bool = False,
    ) -> List[CaseRecord]:
        """A user's cases, newest first. Voided cases are never included."""
        return self.db.list_user_cases(guild_id, user_id, include_deleted=include_deleted)

    def list_deleted_by_user(self: "CaseService", guild_id: str, user_id: str) -> List[CaseRecord]:
        """A user's soft-deleted (not voided) cases."""
        return self.db.list_deleted_user_cases(guild_id, user_id)

    def list_by_guild(
        self: "CaseService",
        guild_id: str,
        status: Optional[str] = None,
        action_type: Optional[str] = None,
        moderator_id: Optional[str] = None,
        include_voided: bool = False,
        limit: Optional[int] = None,
    ) -> List[CaseRecord]:
        """A guild's cases with optional filters, newest first."""
        return self.db.list_guild_cases(
            guild_id,
            status=status,
            action_type=action_type,
            moderator_id=moderator_id,
            include_voided=include_voided,
            limit=limit,
        )

    def active_history(self: "CaseService", guild_id: str, user_id: str) -> List[CaseRecord]:
        return self.list_by_user(guild_id, user_id, include_deleted=False)

    def deleted_history(self: "CaseService", guild_id: str, user_id: str) -> List[CaseRecord]:
        return self.list_deleted_by_user(guild_id, user_id)

    # =========================================================================
    # History
    # =========================================================================

    def history(
        self: "CaseService",
        case_id: str,
        include_voided: bool = False,
    ) -> List[CaseEditRecord]:
        """
        Edit history of a case, newest first.

        The rows of a voided case are kept but hidden; pass
        include_voided=True (compliance review) to read them.
        """
        case = self.get(case_id)
        if case is None:
            return []
        if case["status"] == STATUS_VOIDED and not include_voided:
            logger.debug("Edit History Hidden (Voided)", [("Case ID", case["case_id"])])
            return []
        return self.db.get_case_edits(case["case_id"])

    def audit_trail(
        self: "CaseService",
        case_id: str,
        include_voided: bool = False,
    ) -> List[AuditRecord]:
        """
        Every create/edit/delete/restore/void of a case, newest first.

        Hidden for a voided case unless include_voided=True, like history().
        """
        case = self.get(case_id)
        if case is None:
            return []
        if case["status"] == STATUS_VOIDED and not include_voided:
            logger.debug("Audit Trail Hidden (Voided)", [("Case ID", case["case_id"])])
            return []
        return self.db.get_case_audit_trail(case["case_id"])

    # =========================================================================
    # Statistics
    # =========================================================================

    def user_warn_points(self: "CaseService", guild_id: str, user_id: str) -> int:
        """Sum of points over a user's active warns."""
        return self.db.get_user_warn_points(guild_id, user_id)

    def guild_stats(self: "CaseService", guild_id: str) -> GuildStats:
        """Case counts for a guild, voided cases excluded."""
        return GuildStats(**self.db.get_guild_stats(guild_id))

    def moderator_stats(
        self: "CaseService",
        guild_id: str,
        moderator_id: str,
        days: int = STATS_WINDOW_DAYS,
    ) -> ModeratorStats:
        """Per-action breakdown of one moderator's cases over the last `days` days."""
        stats = self.db.get_moderator_stats(guild_id, moderator_id, days=days)
        return ModeratorStats(
            guild_id=normalize_scope(guild_id),
            moderator_id=str(moderator_id),
            days=days,
            **stats,
        )

    def team_stats(
        self: "CaseService",
        guild_id: str,
        days: int = STATS_WINDOW_DAYS,
        limit: int = TEAM_STATS_LIMIT,
    ) -> List[TeamMemberStats]:
        """Moderators ranked by cases created over the last `days` days."""
        return [
            TeamMemberStats(**row)
            for row in self.db.get_team_stats(guild_id, days=days, limit=limit)
        ]

    def action_breakdown(
        self: "CaseService",
        guild_id: str,
        days: int = STATS_WINDOW_DAYS,
    ) -> ActionBreakdown:
        """Count and share of each action type over the last `days` days."""
        breakdown = self.db.get_action_breakdown(guild_id, days=days)
        return ActionBreakdown(guild_id=normalize_scope(guild_id), days=days, **breakdown)

    def weekly_dashboard(self: "CaseService", guild_id: str) -> WeeklyDashboard:
        """Daily counts, top moderators and the week-over-week trend."""
        return WeeklyDashboard(
            guild_id=normalize_scope(guild_id),
            **self.db.get_weekly_dashboard(guild_id),
        )


__all__ = ["QueriesMixin"]
