"""
Casekeeper - Centralized Constants
==================================

Action types, case statuses and other fixed values shared by the
database layer and the services.
Import from this module instead of hardcoding values.
"""

# =============================================================================
# Scopes
# =============================================================================

GLOBAL_SCOPE = "GLOBAL"
"""Sentinel guild ID (and counter scope) for cross-guild cases."""

# =============================================================================
# Case Statuses
# =============================================================================

STATUS_ACTIVE = "active"
STATUS_DELETED = "deleted"
STATUS_VOIDED = "voided"

# =============================================================================
# Action Types
# =============================================================================

ACTION_WARN = "warn"
ACTION_MUTE = "mute"
ACTION_UNMUTE = "unmute"
ACTION_KICK = "kick"
ACTION_BAN = "ban"
ACTION_UNBAN = "unban"
ACTION_TIMEOUT = "timeout"
ACTION_INVESTIGATION = "investigation"
ACTION_GLOBAL_BAN = "global_ban"
ACTION_GLOBAL_UNBAN = "global_unban"
ACTION_GLOBAL_KICK = "global_kick"
ACTION_GLOBAL_MUTE = "global_mute"

ACTION_TYPES = frozenset({
    ACTION_WARN,
    ACTION_MUTE,
    ACTION_UNMUTE,
    ACTION_KICK,
    ACTION_BAN,
    ACTION_UNBAN,
    ACTION_TIMEOUT,
    ACTION_INVESTIGATION,
    ACTION_GLOBAL_BAN,
    ACTION_GLOBAL_UNBAN,
    ACTION_GLOBAL_KICK,
    ACTION_GLOBAL_MUTE,
})

GLOBAL_ACTION_TYPES = frozenset({
    ACTION_GLOBAL_BAN,
    ACTION_GLOBAL_UNBAN,
    ACTION_GLOBAL_KICK,
    ACTION_GLOBAL_MUTE,
})

# Reversals don't need a reason; everything else is punitive
NON_PUNITIVE_ACTION_TYPES = frozenset({
    ACTION_UNMUTE,
    ACTION_UNBAN,
    ACTION_GLOBAL_UNBAN,
})

DEFAULT_REASON = "No reason provided"

# =============================================================================
# Editing
# =============================================================================

EDITABLE_FIELDS = ("reason", "evidence", "points")
"""Fields an edit may change. Subject, actor and action are immutable."""

MIN_WARN_POINTS = 1
MAX_WARN_POINTS = 100

# =============================================================================
# Audit Log Actions
# =============================================================================

AUDIT_CASE_CREATE = "CASE_CREATE"
AUDIT_CASE_EDIT = "CASE_EDIT"
AUDIT_CASE_DELETE = "CASE_DELETE"
AUDIT_CASE_RESTORE = "CASE_RESTORE"
AUDIT_CASE_VOID = "CASE_VOID"
AUDIT_GLOBAL_PROPAGATION = "GLOBAL_PROPAGATION"

# =============================================================================
# Reporting
# =============================================================================

STATS_WINDOW_DAYS = 30
TEAM_STATS_LIMIT = 15
DASHBOARD_DAYS = 7
DASHBOARD_TOP_MODERATORS = 5
GLOBAL_BAN_LIST_LIMIT = 25

# =============================================================================
# Database
# =============================================================================

DB_CONNECTION_TIMEOUT = 30.0          # sqlite3.connect timeout (seconds)
SQLITE_BUSY_TIMEOUT = 5000            # PRAGMA busy_timeout (milliseconds)

# =============================================================================
# Propagation
# =============================================================================

PROPAGATION_CONCURRENCY = 5           # Concurrent platform calls per global action
PROPAGATION_TIMEOUT = 15.0            # Per-guild platform call timeout (seconds)
CARRYOVER_DELAY = 0.3                 # Pause between carryover bans (rate limit)
