"""
Casekeeper - Case Service
=========================

State machine controller for moderation cases.
"""

from typing import Optional

from casekeeper.core.config import Config, get_config
from casekeeper.core.database import DatabaseManager, get_db
from casekeeper.core.logger import logger

from .helpers import HelpersMixin
from .create import CreateMixin
from .edit import EditMixin
from .lifecycle import LifecycleMixin
from .queries import QueriesMixin


class CaseService(HelpersMixin, CreateMixin, EditMixin, LifecycleMixin, QueriesMixin):
    """
    Service for issuing, amending and retiring moderation cases.

    DESIGN:
        Every mutation runs in one BEGIN IMMEDIATE transaction that
        re-reads the case, checks the transition guard, writes the change
        and its audit row. Two racing transitions on the same case are
        therefore serialized, and a rejected guard changes nothing.

        Guard rejections raise InvalidTransitionError / CaseValidationError;
        database errors raise StorageFailure. get() returns None for an
        unknown case, mutations raise CaseNotFoundError.
    """

    def __init__(
        self,
        db: Optional[DatabaseManager] = None,
        config: Optional[Config] = None,
    ) -> None:
        self.db = db or get_db()
        self.config = config or get_config()

        logger.tree("Case Service Initialized", [
            ("Database", str(self.db.db_path)),
            ("Prefixes", f"{self.config.case_prefix} / {self.config.global_prefix}"),
            ("Strict Soft Delete", "Yes" if self.config.strict_soft_delete else "No"),
        ], emoji="📁")


__all__ = ["CaseService"]
