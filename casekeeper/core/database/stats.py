"""
Casekeeper - Database Statistics Operations
===========================================

Read-only aggregates over the cases table. Every query applies the same
NOT_VOIDED rule as the case listings.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from casekeeper.core.constants import (
    DASHBOARD_DAYS,
    DASHBOARD_TOP_MODERATORS,
    STATS_WINDOW_DAYS,
    TEAM_STATS_LIMIT,
)
from casekeeper.core.database.base import utcnow_iso
from casekeeper.core.database.cases import NOT_VOIDED
from casekeeper.utils.case_ids import normalize_scope

if TYPE_CHECKING:
    from casekeeper.core.database.manager import DatabaseManager


def _window_start(days: int) -> str:
    """ISO timestamp `days` days ago, comparable with created_at."""
    return utcnow_iso(offset=-timedelta(days=days))


def _percent(part: int, total: int) -> int:
    return round(part / total * 100) if total else 0


class StatsMixin:
    """Mixin for case statistics."""

    def get_user_warn_points(self: "DatabaseManager", guild_id: str, user_id: str) -> int:
        """Sum of points over a user's active warn cases in a guild."""
        row = self.fetchone(
            f"""SELECT COALESCE(SUM(points), 0) AS total FROM cases
                WHERE guild_id = ? AND user_id = ?
                AND action_type = 'warn' AND status = 'active'
                AND {NOT_VOIDED}""",
            (normalize_scope(guild_id), str(user_id))
        )
        return int(row["total"]) if row else 0

    def get_guild_stats(self: "DatabaseManager", guild_id: str) -> Dict[str, int]:
        """
        Case counts for a guild, voided cases excluded.

        Returns:
            Dict with total, warns, mutes, kicks, bans, active, deleted.
        """
        row = self.fetchone(
            f"""SELECT
                    COUNT(*) AS total,
                    COALESCE(SUM(CASE WHEN action_type = 'warn' THEN 1 ELSE 0 END), 0) AS warns,
                    COALESCE(SUM(CASE WHEN action_type = 'mute' THEN 1 ELSE 0 END), 0) AS mutes,
                    COALESCE(SUM(CASE WHEN action_type = 'kick' THEN 1 ELSE 0 END), 0) AS kicks,
                    COALESCE(SUM(CASE WHEN action_type = 'ban' THEN 1 ELSE 0 END), 0) AS bans,
                    COALESCE(SUM(CASE WHEN status = 'active' THEN 1 ELSE 0 END), 0) AS active,
                    COALESCE(SUM(CASE WHEN status = 'deleted' THEN 1 ELSE 0 END), 0) AS deleted
                FROM cases
                WHERE guild_id = ? AND {NOT_VOIDED}""",
            (normalize_scope(guild_id),)
        )
        return {key: int(row[key]) for key in row.keys()}

    def get_moderator_stats(
        self: "DatabaseManager",
        guild_id: str,
        moderator_id: str,
        days: int = STATS_WINDOW_DAYS,
    ) -> Dict[str, Any]:
        """
        Cases a moderator created in a guild over the last `days` days.

        Returns:
            Dict with total and by_action (action type -> count).
        """
        rows = self.fetchall(
            f"""SELECT action_type, COUNT(*) AS count FROM cases
                WHERE guild_id = ? AND moderator_id = ?
                AND created_at >= ? AND {NOT_VOIDED}
                GROUP BY action_type
                ORDER BY count DESC, action_type""",
            (normalize_scope(guild_id), str(moderator_id), _window_start(days))
        )
        by_action = {row["action_type"]: int(row["count"]) for row in rows}
        return {
            "total": sum(by_action.values()),
            "by_action": by_action,
        }

    def get_team_stats(
        self: "DatabaseManager",
        guild_id: str,
        days: int = STATS_WINDOW_DAYS,
        limit: int = TEAM_STATS_LIMIT,
    ) -> List[Dict[str, Any]]:
        """
        Moderators ranked by cases created over the last `days` days.

        Returns:
            List of dicts with moderator_id, moderator_tag, total.
        """
        rows = self.fetchall(
            f"""SELECT moderator_id, MAX(moderator_tag) AS moderator_tag, COUNT(*) AS total
                FROM cases
                WHERE guild_id = ? AND created_at >= ? AND {NOT_VOIDED}
                GROUP BY moderator_id
                ORDER BY total DESC, moderator_id
                LIMIT ?""",
            (normalize_scope(guild_id), _window_start(days), int(limit))
        )
        return [dict(row) for row in rows]

    def get_action_breakdown(
        self: "DatabaseManager",
        guild_id: str,
        days: int = STATS_WINDOW_DAYS,
    ) -> Dict[str, Any]:
        """
        Count and share of each action type over the last `days` days.

        Returns:
            Dict with total and actions, a list of dicts with action_type,
            count and percent (rounded to a whole number), largest first.
        """
        rows = self.fetchall(
            f"""SELECT action_type, COUNT(*) AS count FROM cases
                WHERE guild_id = ? AND created_at >= ? AND {NOT_VOIDED}
                GROUP BY action_type
                ORDER BY count DESC, action_type""",
            (normalize_scope(guild_id), _window_start(days))
        )
        total = sum(int(row["count"]) for row in rows)
        return {
            "total": total,
            "actions": [
                {
                    "action_type": row["action_type"],
                    "count": int(row["count"]),
                    "percent": _percent(int(row["count"]), total),
                }
                for row in rows
            ],
        }

    def _count_cases_between(
        self: "DatabaseManager",
        guild_id: str,
        start: str,
        end: Optional[str] = None,
    ) -> int:
        query = f"SELECT COUNT(*) AS total FROM cases WHERE guild_id = ? AND created_at >= ? AND {NOT_VOIDED}"
        params: List[Any] = [normalize_scope(guild_id), start]
        if end is not None:
            query += " AND created_at < ?"
            params.append(end)
        row = self.fetchone(query, tuple(params))
        return int(row["total"]) if row else 0

    def get_weekly_dashboard(self: "DatabaseManager", guild_id: str) -> Dict[str, Any]:
        """
        One-week overview of a guild's moderation.

        Daily counts cover the last DASHBOARD_DAYS calendar days (UTC),
        today included, zero-filled. The weekly totals and rankings use
        rolling windows: this week is the last 7 days, last week the 7
        days before that.

        Returns:
            Dict with daily, top_moderators, by_action, this_week,
            last_week, change_percent and trend (up, down or flat).
        """
        scope = normalize_scope(guild_id)
        today = datetime.now(timezone.utc).date()
        first_day = today - timedelta(days=DASHBOARD_DAYS - 1)

        rows = self.fetchall(
            f"""SELECT substr(created_at, 1, 10) AS day, COUNT(*) AS count FROM cases
                WHERE guild_id = ? AND created_at >= ? AND {NOT_VOIDED}
                GROUP BY day""",
            (scope, first_day.isoformat())
        )
        counts = {row["day"]: int(row["count"]) for row in rows}
        daily = []
        for offset in range(DASHBOARD_DAYS):
            day = (first_day + timedelta(days=offset)).isoformat()
            daily.append({"day": day, "count": counts.get(day, 0)})

        week_start = _window_start(DASHBOARD_DAYS)
        this_week = self._count_cases_between(scope, week_start)
        last_week = self._count_cases_between(scope, _window_start(DASHBOARD_DAYS * 2), week_start)

        change = round((this_week - last_week) / last_week * 100) if last_week else 0
        trend = "up" if change > 0 else "down" if change < 0 else "flat"

        return {
            "daily": daily,
            "top_moderators": self.get_team_stats(scope, days=DASHBOARD_DAYS, limit=DASHBOARD_TOP_MODERATORS),
            "by_action": {
                item["action_type"]: item["count"]
                for item in self.get_action_breakdown(scope, days=DASHBOARD_DAYS)["actions"]
            },
            "this_week": this_week,
            "last_week": last_week,
            "change_percent": change,
            "trend": trend,
        }


__all__ = ["StatsMixin"]
