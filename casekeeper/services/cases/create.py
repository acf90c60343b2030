"""
Casekeeper - Case Creation
==========================

Validation and insertion of new cases.
"""

from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union

from pydantic import ValidationError

from casekeeper.core.constants import (
    ACTION_TYPES,
    ACTION_WARN,
    AUDIT_CASE_CREATE,
    DEFAULT_REASON,
    GLOBAL_ACTION_TYPES,
    GLOBAL_SCOPE,
    MAX_WARN_POINTS,
    MIN_WARN_POINTS,
    NON_PUNITIVE_ACTION_TYPES,
    STATUS_ACTIVE,
)
from casekeeper.core.database.base import utcnow_iso
from casekeeper.core.database.models import CaseRecord
from casekeeper.core.errors import CaseValidationError, ErrorCode
from casekeeper.utils.case_ids import normalize_scope
from casekeeper.utils.duration import is_valid_duration

from .helpers import _truncate
from .models import CaseCreate
from .transitions import EVENT_CREATE, check_transition, target_status

if TYPE_CHECKING:
    from .service import CaseService

CreatedHook = Callable[[Any, CaseRecord], None]


class CreateMixin:
    """Mixin for case creation."""

    def _validate_create(self: "CaseService", data: Union[CaseCreate, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Validate creation input and resolve defaults.

        Returns:
            Column values for the new case, without case_id and timestamps.

        Raises:
            CaseValidationError: On a missing field or unusable value.
        """
        if not isinstance(data, CaseCreate):
            try:
                data = CaseCreate.model_validate(data)
            except ValidationError as e:
                fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
                raise CaseValidationError(
                    ErrorCode.VALIDATION_MISSING_FIELD,
                    details={"fields": fields},
                ) from e

        if data.action_type not in ACTION_TYPES:
            raise CaseValidationError(
                ErrorCode.VALIDATION_INVALID_ACTION,
                details={"action_type": data.action_type},
            )

        reason = data.reason.strip() if data.reason else None
        if not reason:
            if data.action_type not in NON_PUNITIVE_ACTION_TYPES:
                raise CaseValidationError(
                    ErrorCode.VALIDATION_MISSING_FIELD,
                    details={"field": "reason"},
                )
            reason = DEFAULT_REASON

        if data.action_type == ACTION_WARN:
            points = data.points if data.points is not None else self.config.default_warn_points
            if not MIN_WARN_POINTS <= points <= MAX_WARN_POINTS:
                raise CaseValidationError(
                    ErrorCode.VALIDATION_INVALID_POINTS,
                    details={"points": points, "min": MIN_WARN_POINTS, "max": MAX_WARN_POINTS},
                )
        else:
            if data.points not in (None, 1):
                raise CaseValidationError(
                    ErrorCode.VALIDATION_INVALID_POINTS,
                    details={"points": data.points, "action_type": data.action_type},
                )
            points = 1

        duration = data.duration.strip() if data.duration else None
        if duration and not is_valid_duration(duration):
            raise CaseValidationError(
                ErrorCode.VALIDATION_INVALID_DURATION,
                details={"duration": duration},
            )

        is_global = (
            data.global_case
            or normalize_scope(data.guild_id) == GLOBAL_SCOPE
            or data.action_type in GLOBAL_ACTION_TYPES
        )

        return {
            "guild_id": GLOBAL_SCOPE if is_global else data.guild_id,
            "is_global": is_global,
            "user_id": data.user_id,
            "user_tag": data.user_tag,
            "moderator_id": data.moderator_id,
            "moderator_tag": data.moderator_tag,
            "action_type": data.action_type,
            "reason": reason,
            "evidence": data.evidence,
            "duration": duration,
            "points": points,
        }

    def create(
        self: "CaseService",
        data: Union[CaseCreate, Dict[str, Any]],
        on_created: Optional[CreatedHook] = None,
    ) -> CaseRecord:
        """
        Create a new active case.

        The identifier is allocated in the same transaction as the insert,
        so a failed insert never consumes a number.

        Args:
            data: CaseCreate or a dict with the same keys.
            on_created: Optional callback run as on_created(tx, case) inside
                the creating transaction, for writes that must commit with
                the case.

        Returns:
            The full case record.

        Raises:
            CaseValidationError: On invalid input.
            StorageFailure: If the database fails.
        """
        values = self._validate_create(data)
        check_transition(None, EVENT_CREATE)

        with self.db.transaction() as tx:
            now = utcnow_iso()
            case_id = self.db._allocate_case_id(tx, values["guild_id"])
            self.db._insert_case(tx, {
                **values,
                "case_id": case_id,
                "status": target_status(EVENT_CREATE),
                "created_at": now,
                "updated_at": now,
            })
            self.db._record_audit(
                tx, AUDIT_CASE_CREATE, case_id, values["guild_id"],
                actor_id=values["moderator_id"],
                actor_tag=values["moderator_tag"],
                to_status=STATUS_ACTIVE,
                details={
                    "action_type": values["action_type"],
                    "user_id": values["user_id"],
                },
                created_at=now,
            )
            case = self.db._fetch_case(tx, case_id)
            if on_created is not None:
                on_created(tx, case)

        self._log_transition("Case Created", case, case["moderator_id"], None, "📋", [
            ("Action", case["action_type"]),
            ("User", f"{case['user_tag'] or 'Unknown'} ({case['user_id']})"),
            ("Reason", _truncate(case["reason"])),
        ])
        return case


__all__ = ["CreateMixin"]
