"""
Casekeeper - Case Editing
=========================

Field-level edits with an audit entry per changed field.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

from casekeeper.core.constants import (
    ACTION_WARN,
    AUDIT_CASE_EDIT,
    EDITABLE_FIELDS,
    MAX_WARN_POINTS,
    MIN_WARN_POINTS,
)
from casekeeper.core.database.base import utcnow_iso
from casekeeper.core.database.models import CaseRecord
from casekeeper.core.errors import CaseValidationError, ErrorCode

from .transitions import EVENT_EDIT, check_transition

if TYPE_CHECKING:
    from .service import CaseService


class EditMixin:
    """Mixin for editing active cases."""

    def _normalize_changes(
        self: "CaseService",
        case: CaseRecord,
        changes: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Coerce requested values and drop the ones that match the case.

        Raises:
            CaseValidationError: On a blank reason, points on a non-warn
                case, or points out of range.
        """
        normalized: Dict[str, Any] = {}

        if "reason" in changes:
            reason = str(changes["reason"]).strip() if changes["reason"] is not None else ""
            if not reason:
                raise CaseValidationError(
                    ErrorCode.VALIDATION_MISSING_FIELD,
                    details={"field": "reason"},
                )
            normalized["reason"] = reason

        if "evidence" in changes:
            evidence = changes["evidence"]
            evidence = evidence.strip() if isinstance(evidence, str) else evidence
            normalized["evidence"] = evidence or None

        if "points" in changes:
            if case["action_type"] != ACTION_WARN:
                raise CaseValidationError(
                    ErrorCode.VALIDATION_FIELD_NOT_EDITABLE,
                    details={"field": "points", "action_type": case["action_type"]},
                )
            try:
                points = int(changes["points"])
            except (TypeError, ValueError) as e:
                raise CaseValidationError(
                    ErrorCode.VALIDATION_INVALID_POINTS,
                    details={"points": changes["points"]},
                ) from e
            if not MIN_WARN_POINTS <= points <= MAX_WARN_POINTS:
                raise CaseValidationError(
                    ErrorCode.VALIDATION_INVALID_POINTS,
                    details={"points": points, "min": MIN_WARN_POINTS, "max": MAX_WARN_POINTS},
                )
            normalized["points"] = points

        return {field: value for field, value in normalized.items() if case[field] != value}

    def edit(
        self: "CaseService",
        case_id: str,
        editor_id: str,
        editor_tag: Optional[str],
        changes: Dict[str, Any],
        edit_reason: str,
    ) -> CaseRecord:
        """
        Edit reason, evidence or points of an active case.

        One case_edits row is written per changed field, in the same
        transaction as the update.

        Args:
            case_id: Case to edit (case-insensitive).
            editor_id: Moderator making the edit.
            editor_tag: Moderator display tag.
            changes: Field -> new value. Only reason, evidence, points.
            edit_reason: Why the edit was made.

        Returns:
            The updated case.

        Raises:
            CaseValidationError: Empty change set, missing edit reason,
                non-editable field or bad value.
            CaseNotFoundError: If the case does not exist.
            InvalidTransitionError: If the case is not active.
        """
        edit_reason = (edit_reason or "").strip()
        if not edit_reason:
            raise CaseValidationError(
                ErrorCode.VALIDATION_MISSING_FIELD,
                details={"field": "edit_reason"},
            )
        if not changes:
            raise CaseValidationError(ErrorCode.VALIDATION_EMPTY_CHANGES)

        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise CaseValidationError(
                ErrorCode.VALIDATION_FIELD_NOT_EDITABLE,
                details={"fields": unknown, "editable": list(EDITABLE_FIELDS)},
            )

        case_id = self._require_case_id(case_id)

        with self.db.transaction() as tx:
            case = self._load_for_update(tx, case_id)
            check_transition(case["status"], EVENT_EDIT, case_id)

            applied = self._normalize_changes(case, changes)
            if not applied:
                raise CaseValidationError(
                    ErrorCode.VALIDATION_EMPTY_CHANGES,
                    details={"case_id": case_id},
                )

            now = utcnow_iso()
            for field in EDITABLE_FIELDS:
                if field in applied:
                    self.db._record_case_edit(
                        tx, case_id, editor_id, editor_tag,
                        field, case[field], applied[field], edit_reason,
                        created_at=now,
                    )
            self.db._update_case(tx, case_id, applied, updated_at=now)
            self.db._record_audit(
                tx, AUDIT_CASE_EDIT, case_id, case["guild_id"],
                actor_id=editor_id,
                actor_tag=editor_tag,
                from_status=case["status"],
                to_status=case["status"],
                details={"fields": sorted(applied), "edit_reason": edit_reason},
                created_at=now,
            )
            updated = self.db._fetch_case(tx, case_id)

        self._log_transition("Case Edited", updated, editor_id, case["status"], "✏️", [
            ("Fields", ", ".join(sorted(applied))),
            ("Edit Reason", edit_reason[:50]),
        ])
        return updated


__all__ = ["EditMixin"]
