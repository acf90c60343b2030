"""
Casekeeper - Global Action Results
==================================

Result types for cross-guild propagation and registry lookups.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from casekeeper.core.database.models import GlobalBanRecord, GlobalMuteRecord


@dataclass
class PropagationResult:
    """Per-guild outcome of one global action."""
    case_id: str
    action: str
    succeeded: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def target_count(self) -> int:
        return len(self.succeeded) + len(self.skipped) + len(self.failed)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


@dataclass
class CarryoverResult:
    """Outcome of applying the global ban registry to one guild."""
    guild_id: str
    total: int = 0
    applied: int = 0
    already_banned: int = 0
    failed: int = 0


@dataclass
class GlobalStatus:
    """A user's entries in the global ban and mute registries."""
    user_id: str
    ban: Optional[GlobalBanRecord] = None
    mute: Optional[GlobalMuteRecord] = None

    @property
    def is_banned(self) -> bool:
        return self.ban is not None

    @property
    def is_muted(self) -> bool:
        return self.mute is not None


__all__ = ["PropagationResult", "CarryoverResult", "GlobalStatus"]
