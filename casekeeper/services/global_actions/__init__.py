"""
Casekeeper - Global Actions Package
===================================

Cross-guild moderation: case first, then bounded fan-out to every guild.
"""

from .executor import DiscordActionExecutor, PlatformActionExecutor
from .models import CarryoverResult, GlobalStatus, PropagationResult
from .service import GlobalModerationService

__all__ = [
    "GlobalModerationService",
    "PlatformActionExecutor",
    "DiscordActionExecutor",
    "PropagationResult",
    "CarryoverResult",
    "GlobalStatus",
]
