"""
Casekeeper - Database Type Definitions
======================================

TypedDict definitions for database records.
"""

from typing import Any, Dict, Optional, TypedDict


class CaseRecord(TypedDict, total=False):
    """Type for case records returned from database."""
    id: int
    case_id: str
    guild_id: str
    is_global: bool
    user_id: str
    user_tag: Optional[str]
    moderator_id: str
    moderator_tag: Optional[str]
    action_type: str
    reason: Optional[str]
    evidence: Optional[str]
    duration: Optional[str]
    points: int
    status: str
    created_at: str
    updated_at: str
    deleted_at: Optional[str]
    deleted_by: Optional[str]
    voided_at: Optional[str]
    voided_by: Optional[str]
    void_reason: Optional[str]


class CaseEditRecord(TypedDict, total=False):
    """Type for one field-level edit of a case."""
    id: int
    case_id: str
    editor_id: str
    editor_tag: Optional[str]
    field_changed: str
    old_value: Optional[str]
    new_value: Optional[str]
    edit_reason: str
    created_at: str


class AuditRecord(TypedDict, total=False):
    """Type for case transition audit records."""
    id: int
    action: str
    case_id: str
    scope: str
    actor_id: Optional[str]
    actor_tag: Optional[str]
    from_status: Optional[str]
    to_status: Optional[str]
    details: Dict[str, Any]
    created_at: str


class GlobalBanRecord(TypedDict, total=False):
    """Type for global ban registry records."""
    id: int
    user_id: str
    user_tag: Optional[str]
    banned_by: str
    banned_by_tag: Optional[str]
    reason: Optional[str]
    case_id: Optional[str]
    banned_at: str


class GlobalMuteRecord(TypedDict, total=False):
    """Type for global mute registry records."""
    id: int
    user_id: str
    user_tag: Optional[str]
    muted_by: str
    muted_by_tag: Optional[str]
    reason: Optional[str]
    duration: Optional[str]
    duration_seconds: int
    expires_at: str
    case_id: Optional[str]
    muted_at: str


__all__ = [
    "CaseRecord",
    "CaseEditRecord",
    "AuditRecord",
    "GlobalBanRecord",
    "GlobalMuteRecord",
]
