"""
Casekeeper - Case ID Utilities
==============================

Formatting and normalisation of human-readable case identifiers
(CASE-0007, GLOBAL-0003).
"""

import re
from typing import Optional, Tuple

from casekeeper.core.constants import GLOBAL_SCOPE

CASE_ID_PATTERN = re.compile(r"^([A-Z]+)-(\d+)$")


def format_case_id(prefix: str, number: int, width: int = 4) -> str:
    """
    Build a case ID from its prefix and sequence number.

    Numbers wider than the padding are kept whole (CASE-12345).
    """
    return f"{prefix}-{number:0{width}d}"


def normalize_case_id(case_id: Optional[str]) -> str:
    """Strip and upper-case a case ID received from a caller."""
    return (case_id or "").strip().upper()


def normalize_scope(guild_id) -> str:
    """Guild ID as stored, with any spelling of GLOBAL mapped to the sentinel."""
    scope = str(guild_id).strip()
    return GLOBAL_SCOPE if scope.upper() == GLOBAL_SCOPE else scope


def parse_case_id(case_id: Optional[str]) -> Optional[Tuple[str, int]]:
    """
    Split a case ID into (prefix, number).

    Returns:
        Tuple of prefix and number, or None if the ID is malformed.
    """
    match = CASE_ID_PATTERN.match(normalize_case_id(case_id))
    if not match:
        return None
    return match.group(1), int(match.group(2))


def is_valid_case_id(case_id: Optional[str]) -> bool:
    """Check whether a string looks like a case ID."""
    return parse_case_id(case_id) is not None


__all__ = [
    "CASE_ID_PATTERN",
    "format_case_id",
    "normalize_case_id",
    "normalize_scope",
    "parse_case_id",
    "is_valid_case_id",
]
