"""
Casekeeper - Case Service Models
================================

Pydantic models for case creation input and reporting results.
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# Input Models
# =============================================================================

class CaseCreate(BaseModel):
    """Input for CaseService.create."""
    guild_id: str = Field(min_length=1, description="Guild ID, or GLOBAL")
    user_id: str = Field(min_length=1, description="Subject user ID")
    moderator_id: str = Field(min_length=1, description="Moderator user ID")
    action_type: str = Field(min_length=1, description="warn, mute, ban, ...")
    user_tag: Optional[str] = Field(None, description="Subject display tag")
    moderator_tag: Optional[str] = Field(None, description="Moderator display tag")
    reason: Optional[str] = Field(None, description="Reason for the action")
    evidence: Optional[str] = Field(None, description="Evidence link or note")
    duration: Optional[str] = Field(None, description="Human-readable duration, e.g. 1h")
    points: Optional[int] = Field(None, description="Warn points (warn only)")
    global_case: bool = Field(False, description="Issue under the global scope")

    @field_validator("guild_id", "user_id", "moderator_id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        # Discord snowflakes arrive as ints from discord.py
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value.strip() if isinstance(value, str) else value

    @field_validator("action_type", mode="before")
    @classmethod
    def _normalize_action(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("reason", "evidence", "duration", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


# =============================================================================
# Reporting Models
# =============================================================================

class GuildStats(BaseModel):
    """Case counts for one guild, voided cases excluded."""
    total: int = Field(0, description="All non-voided cases")
    warns: int = Field(0, description="Warn cases")
    mutes: int = Field(0, description="Mute cases")
    kicks: int = Field(0, description="Kick cases")
    bans: int = Field(0, description="Ban cases")
    active: int = Field(0, description="Cases with status active")
    deleted: int = Field(0, description="Cases with status deleted")


class ModeratorStats(BaseModel):
    """Cases one moderator created over a time window."""
    guild_id: str
    moderator_id: str
    days: int
    total: int = 0
    by_action: Dict[str, int] = Field(default_factory=dict, description="Action type -> count")


class TeamMemberStats(BaseModel):
    """One row of the moderation team ranking."""
    moderator_id: str
    moderator_tag: Optional[str] = None
    total: int = 0


class ActionShare(BaseModel):
    """One action type's slice of a guild's cases."""
    action_type: str
    count: int = 0
    percent: int = Field(0, description="Share of the total, rounded to a whole number")


class ActionBreakdown(BaseModel):
    """Cases per action type over a time window."""
    guild_id: str
    days: int
    total: int = 0
    actions: List[ActionShare] = Field(default_factory=list)


class DailyCount(BaseModel):
    day: str = Field(description="UTC date, YYYY-MM-DD")
    count: int = 0


class WeeklyDashboard(BaseModel):
    """One-week overview of a guild's moderation."""
    guild_id: str
    daily: List[DailyCount] = Field(default_factory=list, description="Oldest day first")
    top_moderators: List[TeamMemberStats] = Field(default_factory=list)
    by_action: Dict[str, int] = Field(default_factory=dict)
    this_week: int = 0
    last_week: int = 0
    change_percent: int = 0
    trend: Literal["up", "down", "flat"] = "flat"


__all__ = [
    "CaseCreate",
    "GuildStats",
    "ModeratorStats",
    "TeamMemberStats",
    "ActionShare",
    "ActionBreakdown",
    "DailyCount",
    "WeeklyDashboard",
]
