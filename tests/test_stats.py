"""
Casekeeper - Reporting Tests
============================

Tests for listings, warn points and guild/moderator statistics.
"""

from datetime import timedelta

import pytest

from casekeeper.core.database.base import utcnow_iso
from casekeeper.core.errors import InvalidTransitionError


class TestWarnPoints:
    """Tests for user_warn_points."""

    def test_only_active_warns_count(self, case_service, make_case):
        """Test deleted and voided warns, and non-warns, are excluded."""
        make_case(points=2)
        deleted = make_case(points=4)
        voided = make_case(points=8)
        make_case(action_type="mute", reason="noise")
        make_case(points=16, user_id="U2")

        case_service.soft_delete(deleted["case_id"], "M1")
        case_service.void(voided["case_id"], "M1", "bad entry")

        assert case_service.user_warn_points("G1", "U1") == 2

    def test_no_cases_is_zero(self, case_service):
        """Test a clean user has zero points."""
        assert case_service.user_warn_points("G1", "nobody") == 0

    def test_restore_counts_again(self, case_service, make_case):
        """Test restoring a warn adds its points back."""
        case = make_case(points=3)
        case_service.soft_delete(case["case_id"], "M1")
        assert case_service.user_warn_points("G1", "U1") == 0

        case_service.restore(case["case_id"])
        assert case_service.user_warn_points("G1", "U1") == 3


class TestScenario:
    """End-to-end walk through warn points, deletion and voiding."""

    def test_full_scenario(self, case_service, make_case):
        """Test the documented G1/U1 sequence."""
        first = make_case(points=2)
        second = make_case(points=3)
        assert (first["case_id"], second["case_id"]) == ("CASE-0001", "CASE-0002")
        assert case_service.user_warn_points("G1", "U1") == 5

        case_service.soft_delete("CASE-0001", "M1")
        assert case_service.user_warn_points("G1", "U1") == 3

        case_service.void("CASE-0002", "M1", "bad entry")

        with pytest.raises(InvalidTransitionError):
            case_service.restore("CASE-0002")

        listed = case_service.list_by_user("G1", "U1", include_deleted=True)
        assert [c["case_id"] for c in listed] == ["CASE-0001"]
        assert listed[0]["status"] == "deleted"
        assert case_service.list_by_user("G1", "U1") == []


class TestListings:
    """Tests for history listings."""

    def test_list_by_user_newest_first(self, case_service, make_case):
        """Test user history is ordered newest first."""
        make_case()
        make_case()
        make_case()

        ids = [c["case_id"] for c in case_service.active_history("G1", "U1")]
        assert ids == ["CASE-0003", "CASE-0002", "CASE-0001"]

    def test_list_by_user_scoped_to_guild(self, case_service, make_case):
        """Test another guild's cases are not listed."""
        make_case(guild_id="G1")
        make_case(guild_id="G2")

        assert len(case_service.list_by_user("G1", "U1")) == 1
        assert len(case_service.list_by_user("G2", "U1")) == 1

    def test_deleted_history(self, case_service, make_case):
        """Test deleted history lists deleted, not voided, cases."""
        kept = make_case()
        gone = make_case()
        make_case()
        case_service.soft_delete(kept["case_id"], "M1")
        case_service.soft_delete(gone["case_id"], "M1")
        case_service.void(gone["case_id"], "M1", "bad entry")

        deleted = case_service.deleted_history("G1", "U1")
        assert [c["case_id"] for c in deleted] == [kept["case_id"]]

    def test_list_by_guild_status_filter(self, case_service, make_case):
        """Test guild listing by status."""
        make_case()
        second = make_case(user_id="U2")
        case_service.soft_delete(second["case_id"], "M1")

        deleted = case_service.list_by_guild("G1", status="deleted")
        assert [c["case_id"] for c in deleted] == [second["case_id"]]

    def test_list_by_guild_hides_voided(self, case_service, make_case):
        """Test voided cases need include_voided."""
        case = make_case()
        case_service.void(case["case_id"], "M1", "bad entry")

        assert case_service.list_by_guild("G1") == []
        assert len(case_service.list_by_guild("G1", include_voided=True)) == 1


class TestGuildStats:
    """Tests for guild_stats."""

    def test_counts_by_action_and_status(self, case_service, make_case):
        """Test counts are grouped by action type and status."""
        make_case()
        make_case(action_type="mute", reason="noise")
        make_case(action_type="kick", reason="raid")
        banned = make_case(action_type="ban", reason="raid")
        case_service.soft_delete(banned["case_id"], "M1")

        stats = case_service.guild_stats("G1")
        assert stats.total == 4
        assert (stats.warns, stats.mutes, stats.kicks, stats.bans) == (1, 1, 1, 1)
        assert (stats.active, stats.deleted) == (3, 1)

    def test_void_is_reflected_immediately(self, case_service, make_case):
        """Test voiding a counted case drops it from the total at once."""
        case = make_case()
        make_case()
        assert case_service.guild_stats("G1").total == 2

        case_service.void(case["case_id"], "M1", "bad entry")
        assert case_service.guild_stats("G1").total == 1

    def test_empty_guild(self, case_service):
        """Test an empty guild reports zeros."""
        stats = case_service.guild_stats("G-empty")
        assert stats.total == 0
        assert stats.model_dump() == {
            "total": 0, "warns": 0, "mutes": 0, "kicks": 0,
            "bans": 0, "active": 0, "deleted": 0,
        }


class TestModeratorStats:
    """Tests for moderator_stats and team_stats."""

    def test_moderator_breakdown(self, case_service, make_case):
        """Test per-action counts for one moderator."""
        make_case(moderator_id="M1")
        make_case(moderator_id="M1")
        make_case(moderator_id="M1", action_type="ban", reason="raid")
        make_case(moderator_id="M2")
        voided = make_case(moderator_id="M1")
        case_service.void(voided["case_id"], "M1", "bad entry")

        stats = case_service.moderator_stats("G1", "M1")
        assert stats.total == 3
        assert stats.by_action == {"warn": 2, "ban": 1}
        assert stats.days == 30

    def test_window_excludes_old_cases(self, case_service, make_case):
        """Test cases older than the window are not counted."""
        old = make_case(moderator_id="M1")
        make_case(moderator_id="M1")
        case_service.db.execute(
            "UPDATE cases SET created_at = ? WHERE case_id = ?",
            (utcnow_iso(offset=-timedelta(days=45)), old["case_id"]),
        )

        assert case_service.moderator_stats("G1", "M1").total == 1
        assert case_service.moderator_stats("G1", "M1", days=60).total == 2

    def test_team_ranking(self, case_service, make_case):
        """Test moderators are ranked by case count."""
        for _ in range(3):
            make_case(moderator_id="M2", moderator_tag="two#0002")
        make_case(moderator_id="M1", moderator_tag="one#0001")

        team = case_service.team_stats("G1")
        assert [(m.moderator_id, m.total) for m in team] == [("M2", 3), ("M1", 1)]
        assert team[0].moderator_tag == "two#0002"

    def test_team_limit(self, case_service, make_case):
        """Test the ranking honours the limit."""
        for index in range(5):
            make_case(moderator_id=f"M{index}")

        assert len(case_service.team_stats("G1", limit=2)) == 2


def _age(case_service, case_id, days):
    """Move a case's created_at `days` days into the past."""
    created_at = utcnow_iso(offset=-timedelta(days=days))
    case_service.db.execute(
        "UPDATE cases SET created_at = ? WHERE case_id = ?",
        (created_at, case_id),
    )
    return created_at


class TestActionBreakdown:
    """Tests for action_breakdown."""

    def test_counts_and_shares(self, case_service, make_case):
        """Test each action type's count and rounded share, largest first."""
        for _ in range(3):
            make_case()
        make_case(action_type="ban", reason="raid")

        breakdown = case_service.action_breakdown("G1")

        assert breakdown.total == 4
        assert breakdown.days == 30
        assert [(a.action_type, a.count, a.percent) for a in breakdown.actions] == [
            ("warn", 3, 75), ("ban", 1, 25),
        ]

    def test_voided_and_old_cases_excluded(self, case_service, make_case):
        """Test voided cases and cases outside the window are not counted."""
        make_case()
        voided = make_case(action_type="kick", reason="raid")
        old = make_case(action_type="mute", reason="noise")
        case_service.void(voided["case_id"], "M1", "bad entry")
        _age(case_service, old["case_id"], 45)

        breakdown = case_service.action_breakdown("G1")
        assert breakdown.total == 1
        assert [a.action_type for a in breakdown.actions] == ["warn"]

        assert case_service.action_breakdown("G1", days=60).total == 2

    def test_empty_guild(self, case_service):
        """Test an empty guild has no slices."""
        breakdown = case_service.action_breakdown("G-empty")
        assert breakdown.total == 0
        assert breakdown.actions == []


class TestWeeklyDashboard:
    """Tests for weekly_dashboard."""

    def test_daily_counts_zero_filled(self, case_service, make_case):
        """Test seven days, oldest first, with cases on the right day."""
        make_case()
        make_case()
        aged = make_case()
        created_at = _age(case_service, aged["case_id"], 3)

        dashboard = case_service.weekly_dashboard("G1")

        assert len(dashboard.daily) == 7
        days = [entry.day for entry in dashboard.daily]
        assert days == sorted(days)
        assert dashboard.daily[-1].day == utcnow_iso()[:10]
        assert dashboard.daily[-1].count == 2
        by_day = {entry.day: entry.count for entry in dashboard.daily}
        assert by_day[created_at[:10]] == 1
        assert sum(by_day.values()) == 3

    def test_trend_up(self, case_service, make_case):
        """Test more cases this week than last is an upward trend."""
        make_case()
        make_case()
        _age(case_service, make_case()["case_id"], 10)

        dashboard = case_service.weekly_dashboard("G1")

        assert (dashboard.this_week, dashboard.last_week) == (2, 1)
        assert dashboard.change_percent == 100
        assert dashboard.trend == "up"

    def test_trend_down(self, case_service, make_case):
        """Test fewer cases this week than last is a downward trend."""
        make_case()
        for _ in range(4):
            _age(case_service, make_case()["case_id"], 9)

        dashboard = case_service.weekly_dashboard("G1")

        assert (dashboard.this_week, dashboard.last_week) == (1, 4)
        assert dashboard.change_percent == -75
        assert dashboard.trend == "down"

    def test_no_previous_week_is_flat(self, case_service, make_case):
        """Test an empty previous week reports no change."""
        make_case()

        dashboard = case_service.weekly_dashboard("G1")
        assert (dashboard.change_percent, dashboard.trend) == (0, "flat")

    def test_top_moderators_and_actions(self, case_service, make_case):
        """Test the five busiest moderators and the weekly action counts."""
        for index in range(6):
            for _ in range(index + 1):
                make_case(moderator_id=f"M{index}")
        make_case(moderator_id="M0", action_type="ban", reason="raid")
        voided = make_case(moderator_id="M9")
        case_service.void(voided["case_id"], "M1", "bad entry")

        dashboard = case_service.weekly_dashboard("G1")

        assert [m.moderator_id for m in dashboard.top_moderators] == ["M5", "M4", "M3", "M2", "M0"]
        assert dashboard.by_action == {"warn": 21, "ban": 1}
        assert dashboard.this_week == 22


class TestGlobalScopeReads:
    """Tests for reading the GLOBAL scope under any spelling."""

    def test_lowercase_global_listings(self, case_service, make_case):
        """Test "global" reads the cases stored under GLOBAL."""
        case = make_case(guild_id="global", action_type="ban", reason="raid")
        assert case["guild_id"] == "GLOBAL"

        assert [c["case_id"] for c in case_service.list_by_guild("global")] == [case["case_id"]]
        assert len(case_service.list_by_user(" Global ", "U1")) == 1
        assert case_service.guild_stats("global").bans == 1
        assert case_service.action_breakdown("global").guild_id == "GLOBAL"
        assert case_service.db.get_case_counter("global") == 1
