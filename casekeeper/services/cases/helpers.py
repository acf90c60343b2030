"""
Casekeeper - Case Service Helpers
=================================

Shared lookups and logging for the case service mixins.
"""

from typing import TYPE_CHECKING, Optional

from casekeeper.core.errors import CaseNotFoundError, CaseValidationError, ErrorCode
from casekeeper.core.database.models import CaseRecord
from casekeeper.core.logger import logger
from casekeeper.utils.case_ids import is_valid_case_id, normalize_case_id

if TYPE_CHECKING:
    from .service import CaseService


def _truncate(value: Optional[str], limit: int = 50) -> str:
    if not value:
        return "None"
    return value if len(value) <= limit else value[:limit] + "..."


class HelpersMixin:
    """Mixin for shared case service helpers."""

    def _require_case_id(self: "CaseService", case_id: Optional[str]) -> str:
        """
        Normalise a case ID for a mutation.

        Raises:
            CaseValidationError: If the ID is blank or malformed.
        """
        normalized = normalize_case_id(case_id)
        if not is_valid_case_id(normalized):
            raise CaseValidationError(
                ErrorCode.VALIDATION_INVALID_CASE_ID,
                details={"case_id": case_id},
            )
        return normalized

    def _load_for_update(self: "CaseService", tx, case_id: str) -> CaseRecord:
        """
        Re-read a case inside the mutation's transaction.

        Raises:
            CaseNotFoundError: If the case does not exist.
        """
        case = self.db._fetch_case(tx, case_id)
        if case is None:
            raise CaseNotFoundError(details={"case_id": case_id})
        return case

    def _log_transition(
        self: "CaseService",
        title: str,
        case: CaseRecord,
        actor_id: Optional[str],
        from_status: Optional[str],
        emoji: str,
        extra: Optional[list] = None,
    ) -> None:
        """Log one tree entry for a committed transition."""
        items = [
            ("Case ID", case["case_id"]),
            ("Scope", case["guild_id"]),
            ("Actor", str(actor_id) if actor_id is not None else "Unknown"),
            ("Status", f"{from_status or 'new'} → {case['status']}"),
        ]
        if extra:
            items.extend(extra)
        logger.tree(title, items, emoji=emoji)


__all__ = ["HelpersMixin", "_truncate"]
