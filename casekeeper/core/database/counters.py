"""
Casekeeper - Database Counter Operations
========================================

Per-scope case number allocation.
"""

from typing import TYPE_CHECKING

from casekeeper.core.config import get_config
from casekeeper.core.constants import GLOBAL_SCOPE
from casekeeper.core.logger import logger
from casekeeper.utils.case_ids import format_case_id, normalize_scope

if TYPE_CHECKING:
    from casekeeper.core.database.manager import DatabaseManager


class CountersMixin:
    """Mixin for case identifier allocation."""

    def allocate_case_id(self: "DatabaseManager", scope: str) -> str:
        """
        Allocate the next case ID for a scope in its own transaction.

        Args:
            scope: Guild ID, or GLOBAL for cross-guild cases.

        Returns:
            Newly issued case ID (e.g., "CASE-0007").
        """
        with self.transaction() as tx:
            return self._allocate_case_id(tx, scope)

    def _allocate_case_id(self: "DatabaseManager", tx, scope: str) -> str:
        """
        Allocate the next case ID inside an open transaction.

        DESIGN:
            The counter row is read and bumped under the transaction's
            write lock, so two callers can never see the same number. If
            the surrounding insert fails, the rollback also undoes the bump.

            Every guild shares the CASE prefix while keeping its own
            counter, so a freshly formatted ID may already belong to
            another guild. Such numbers are skipped (and consumed) until a
            free ID is found. A guild that is the only one issuing cases
            still gets a contiguous run.
        """
        config = get_config()
        scope = normalize_scope(scope)
        prefix = config.global_prefix if scope == GLOBAL_SCOPE else config.case_prefix

        tx.execute(
            "INSERT OR IGNORE INTO case_counters (scope, current_number) VALUES (?, 0)",
            (scope,)
        )
        tx.execute("SELECT current_number FROM case_counters WHERE scope = ?", (scope,))
        number = tx.fetchone()["current_number"]

        while True:
            number += 1
            case_id = format_case_id(prefix, number, config.case_number_width)
            tx.execute("SELECT 1 FROM cases WHERE case_id = ?", (case_id,))
            if tx.fetchone() is None:
                break
            logger.debug("Case ID Taken By Another Scope", [
                ("Case ID", case_id),
                ("Scope", scope),
            ])

        tx.execute(
            "UPDATE case_counters SET current_number = ? WHERE scope = ?",
            (number, scope)
        )
        return case_id

    def get_case_counter(self: "DatabaseManager", scope: str) -> int:
        """Last number issued for a scope (0 if it never issued one)."""
        row = self.fetchone(
            "SELECT current_number FROM case_counters WHERE scope = ?",
            (normalize_scope(scope),)
        )
        return row["current_number"] if row else 0
