"""
Casekeeper - Utilities Package
==============================

Duration parsing, case ID helpers and async fan-out helpers.
"""

from .case_ids import (
    format_case_id,
    normalize_case_id,
    normalize_scope,
    parse_case_id,
    is_valid_case_id,
)

from .duration import (
    parse_duration,
    is_valid_duration,
    format_duration,
)


__all__ = [
    # Case IDs
    "format_case_id",
    "normalize_case_id",
    "normalize_scope",
    "parse_case_id",
    "is_valid_case_id",
    # Duration
    "parse_duration",
    "is_valid_duration",
    "format_duration",
]
