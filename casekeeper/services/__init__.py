"""
Casekeeper - Services Package
=============================

Case lifecycle service and the cross-guild moderation dispatcher.
"""

from .cases import CaseService
from .global_actions import GlobalModerationService

__all__ = [
    "CaseService",
    "GlobalModerationService",
]
