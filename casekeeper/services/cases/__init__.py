"""
Casekeeper - Case Service Package
=================================

Case lifecycle: creation, edits, soft-delete, restore, void and the
reporting views built on the case store.
"""

from .service import CaseService
from .models import (
    ActionBreakdown,
    CaseCreate,
    GuildStats,
    ModeratorStats,
    TeamMemberStats,
    WeeklyDashboard,
)
from .transitions import TRANSITIONS, can_transition

__all__ = [
    "CaseService",
    "CaseCreate",
    "GuildStats",
    "ModeratorStats",
    "TeamMemberStats",
    "ActionBreakdown",
    "WeeklyDashboard",
    "TRANSITIONS",
    "can_transition",
]
