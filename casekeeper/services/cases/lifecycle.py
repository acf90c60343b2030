"""
Casekeeper - Case Status Transitions
====================================

Soft-delete, restore and void.
"""

from typing import TYPE_CHECKING, Optional

from casekeeper.core.constants import (
    AUDIT_CASE_DELETE,
    AUDIT_CASE_RESTORE,
    AUDIT_CASE_VOID,
)
from casekeeper.core.database.base import utcnow_iso
from casekeeper.core.database.models import CaseRecord
from casekeeper.core.errors import CaseValidationError, ErrorCode
from casekeeper.core.logger import logger

from .helpers import _truncate
from .transitions import (
    EVENT_RESTORE,
    EVENT_SOFT_DELETE,
    EVENT_VOID,
    check_transition,
    target_status,
)

if TYPE_CHECKING:
    from .service import CaseService


class LifecycleMixin:
    """Mixin for case status transitions."""

    def soft_delete(
        self: "CaseService",
        case_id: str,
        deleted_by: str,
        reason: Optional[str] = None,
    ) -> CaseRecord:
        """
        Hide a case from default views. Reversible with restore().

        Args:
            case_id: Case to delete (case-insensitive).
            deleted_by: Moderator deleting the case.
            reason: Optional reason, kept in the audit log.

        Returns:
            The deleted case. With strict soft delete disabled, deleting an
            already deleted case returns it unchanged.

        Raises:
            CaseNotFoundError: If the case does not exist.
            InvalidTransitionError: If the case is voided, or already
                deleted while strict soft delete is on.
        """
        case_id = self._require_case_id(case_id)

        with self.db.transaction() as tx:
            case = self._load_for_update(tx, case_id)
            apply = check_transition(
                case["status"], EVENT_SOFT_DELETE, case_id,
                strict_soft_delete=self.config.strict_soft_delete,
            )
            if not apply:
                logger.debug("Case Already Deleted", [("Case ID", case_id)])
                return case

            now = utcnow_iso()
            self.db._update_case(tx, case_id, {
                "status": target_status(EVENT_SOFT_DELETE),
                "deleted_at": now,
                "deleted_by": str(deleted_by),
            }, updated_at=now)
            self.db._record_audit(
                tx, AUDIT_CASE_DELETE, case_id, case["guild_id"],
                actor_id=deleted_by,
                from_status=case["status"],
                to_status=target_status(EVENT_SOFT_DELETE),
                details={"reason": reason} if reason else None,
                created_at=now,
            )
            updated = self.db._fetch_case(tx, case_id)

        self._log_transition("Case Deleted", updated, deleted_by, case["status"], "🗑️", [
            ("Reason", _truncate(reason)),
        ])
        return updated

    def restore(
        self: "CaseService",
        case_id: str,
        restored_by: Optional[str] = None,
    ) -> CaseRecord:
        """
        Bring a soft-deleted case back to active.

        Raises:
            CaseNotFoundError: If the case does not exist.
            InvalidTransitionError: If the case is active or voided.
        """
        case_id = self._require_case_id(case_id)

        with self.db.transaction() as tx:
            case = self._load_for_update(tx, case_id)
            check_transition(case["status"], EVENT_RESTORE, case_id)

            now = utcnow_iso()
            self.db._update_case(tx, case_id, {
                "status": target_status(EVENT_RESTORE),
                "deleted_at": None,
                "deleted_by": None,
            }, updated_at=now)
            self.db._record_audit(
                tx, AUDIT_CASE_RESTORE, case_id, case["guild_id"],
                actor_id=restored_by,
                from_status=case["status"],
                to_status=target_status(EVENT_RESTORE),
                details={"deleted_by": case["deleted_by"], "deleted_at": case["deleted_at"]},
                created_at=now,
            )
            updated = self.db._fetch_case(tx, case_id)

        self._log_transition("Case Restored", updated, restored_by, case["status"], "♻️")
        return updated

    def void(
        self: "CaseService",
        case_id: str,
        voided_by: str,
        void_reason: str,
    ) -> CaseRecord:
        """
        Permanently seal a case. Voided cases leave every standard view
        and accept no further transitions.

        Raises:
            CaseValidationError: If void_reason is blank.
            CaseNotFoundError: If the case does not exist.
            InvalidTransitionError: If the case is already voided.
        """
        void_reason = (void_reason or "").strip()
        if not void_reason:
            raise CaseValidationError(
                ErrorCode.VALIDATION_MISSING_FIELD,
                details={"field": "void_reason"},
            )
        case_id = self._require_case_id(case_id)

        with self.db.transaction() as tx:
            case = self._load_for_update(tx, case_id)
            check_transition(case["status"], EVENT_VOID, case_id)

            now = utcnow_iso()
            self.db._update_case(tx, case_id, {
                "status": target_status(EVENT_VOID),
                "voided_at": now,
                "voided_by": str(voided_by),
                "void_reason": void_reason,
            }, updated_at=now)
            self.db._record_audit(
                tx, AUDIT_CASE_VOID, case_id, case["guild_id"],
                actor_id=voided_by,
                from_status=case["status"],
                to_status=target_status(EVENT_VOID),
                details={"reason": void_reason},
                created_at=now,
            )
            updated = self.db._fetch_case(tx, case_id)

        self._log_transition("Case Voided", updated, voided_by, case["status"], "⛔", [
            ("Reason", _truncate(void_reason)),
        ])
        return updated


__all__ = ["LifecycleMixin"]
