"""
Casekeeper - Error System
=========================

Centralized error codes and exception types for case operations.

DESIGN:
    Callers need to tell three kinds of failure apart:
    - the case does not exist (NotFound)
    - the request was refused by a guard (InvalidTransition / Validation)
    - the database failed (StorageFailure)
    Each has its own exception class, and every instance carries an
    ErrorCode so the presentation layer can pick its own wording.
"""

from enum import Enum
from typing import Any, Dict, Optional


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCode(str, Enum):
    """
    Centralized error codes.

    Format: CATEGORY_SPECIFIC_ERROR

    Categories:
    - CASE: Case lookup and state machine errors
    - VALIDATION: Input validation errors
    - STORAGE: Database errors
    """

    # Case errors
    CASE_NOT_FOUND = "CASE_NOT_FOUND"
    CASE_INVALID_TRANSITION = "CASE_INVALID_TRANSITION"
    CASE_ALREADY_VOIDED = "CASE_ALREADY_VOIDED"
    CASE_ALREADY_DELETED = "CASE_ALREADY_DELETED"
    CASE_ALREADY_ACTIVE = "CASE_ALREADY_ACTIVE"
    CASE_NOT_EDITABLE = "CASE_NOT_EDITABLE"

    # Validation errors
    VALIDATION_MISSING_FIELD = "VALIDATION_MISSING_FIELD"
    VALIDATION_EMPTY_CHANGES = "VALIDATION_EMPTY_CHANGES"
    VALIDATION_FIELD_NOT_EDITABLE = "VALIDATION_FIELD_NOT_EDITABLE"
    VALIDATION_INVALID_ACTION = "VALIDATION_INVALID_ACTION"
    VALIDATION_INVALID_DURATION = "VALIDATION_INVALID_DURATION"
    VALIDATION_INVALID_POINTS = "VALIDATION_INVALID_POINTS"
    VALIDATION_INVALID_CASE_ID = "VALIDATION_INVALID_CASE_ID"
    VALIDATION_NOT_GLOBALLY_BANNED = "VALIDATION_NOT_GLOBALLY_BANNED"

    # Storage errors
    STORAGE_FAILURE = "STORAGE_FAILURE"
    STORAGE_DUPLICATE_CASE = "STORAGE_DUPLICATE_CASE"


# =============================================================================
# Error Messages
# =============================================================================

ERROR_MESSAGES: Dict[ErrorCode, str] = {
    # Cases
    ErrorCode.CASE_NOT_FOUND: "Moderation case not found",
    ErrorCode.CASE_INVALID_TRANSITION: "This status change is not allowed",
    ErrorCode.CASE_ALREADY_VOIDED: "Case has been voided and cannot be modified",
    ErrorCode.CASE_ALREADY_DELETED: "Case is already deleted",
    ErrorCode.CASE_ALREADY_ACTIVE: "Case is already active",
    ErrorCode.CASE_NOT_EDITABLE: "Only active cases can be edited",

    # Validation
    ErrorCode.VALIDATION_MISSING_FIELD: "Required field is missing",
    ErrorCode.VALIDATION_EMPTY_CHANGES: "No changes specified",
    ErrorCode.VALIDATION_FIELD_NOT_EDITABLE: "This field cannot be edited",
    ErrorCode.VALIDATION_INVALID_ACTION: "Invalid action type specified",
    ErrorCode.VALIDATION_INVALID_DURATION: "Invalid duration specified",
    ErrorCode.VALIDATION_INVALID_POINTS: "Invalid warn points",
    ErrorCode.VALIDATION_INVALID_CASE_ID: "Invalid case ID format",
    ErrorCode.VALIDATION_NOT_GLOBALLY_BANNED: "This user is not globally banned",

    # Storage
    ErrorCode.STORAGE_FAILURE: "A database error occurred",
    ErrorCode.STORAGE_DUPLICATE_CASE: "A case with this ID already exists",
}


# =============================================================================
# Exceptions
# =============================================================================

class CaseError(Exception):
    """
    Base exception for case operations.

    Usage:
        raise CaseNotFoundError(ErrorCode.CASE_NOT_FOUND, details={"case_id": "CASE-0001"})
        raise InvalidTransitionError(ErrorCode.CASE_ALREADY_VOIDED)
    """

    default_code: ErrorCode = ErrorCode.STORAGE_FAILURE

    def __init__(
        self,
        code: Optional[ErrorCode] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.code = code or self.default_code
        self.message = message or ERROR_MESSAGES.get(self.code, "Unknown error")
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Structured form for callers that return results instead of raising."""
        result: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "error_code": self.code.value,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code.value!r}, {self.message!r})"


class CaseNotFoundError(CaseError):
    """A mutation referenced a case ID that does not exist."""

    default_code = ErrorCode.CASE_NOT_FOUND


class InvalidTransitionError(CaseError):
    """A state machine guard refused the request. No data was changed."""

    default_code = ErrorCode.CASE_INVALID_TRANSITION


class CaseValidationError(CaseError):
    """Input is missing a required field or holds an unusable value."""

    default_code = ErrorCode.VALIDATION_MISSING_FIELD


class StorageFailure(CaseError):
    """The database failed. The original sqlite3 error is chained."""

    default_code = ErrorCode.STORAGE_FAILURE


__all__ = [
    "ErrorCode",
    "ERROR_MESSAGES",
    "CaseError",
    "CaseNotFoundError",
    "InvalidTransitionError",
    "CaseValidationError",
    "StorageFailure",
]
