"""
Error taxonomy for the decision engines.

Missing answers are never an error: the MEC, FAB and sterilization engines
treat absence as "no restriction". Errors here cover caller input that cannot
be processed (request shape, personalization filters, calculator inputs) and
unexpected engine failures, which the HTTP layer reports under the failing
engine's code. Each code maps to a fixed message that is safe to show to an
end user.
"""

from typing import Dict, Any, Optional
from enum import Enum


class ErrorCode(Enum):
    """Stable error identifiers surfaced to API callers"""
    ELIGIBILITY_CALCULATION_FAILED = "ELIGIBILITY_CALCULATION_FAILED"
    PERSONALIZATION_FAILED = "PERSONALIZATION_FAILED"
    PERSONALIZATION_INVALID_FILTERS = "PERSONALIZATION_INVALID_FILTERS"
    FAB_EVALUATION_FAILED = "FAB_EVALUATION_FAILED"
    CALCULATOR_INVALID_INPUT = "CALCULATOR_INVALID_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES = {
    ErrorCode.ELIGIBILITY_CALCULATION_FAILED: (
        "We couldn't calculate your eligibility. Please review your answers and try again."
    ),
    ErrorCode.PERSONALIZATION_FAILED: (
        "We encountered an issue personalizing your recommendations. Please try again."
    ),
    ErrorCode.PERSONALIZATION_INVALID_FILTERS: (
        "Your preferences could not be processed. Please review your selections and try again."
    ),
    ErrorCode.FAB_EVALUATION_FAILED: (
        "We couldn't evaluate fertility awareness methods for you. Please try again."
    ),
    ErrorCode.CALCULATOR_INVALID_INPUT: (
        "Please check the cycle lengths and period date you entered and try again."
    ),
    ErrorCode.VALIDATION_ERROR: "Please check your input and try again.",
    ErrorCode.UNKNOWN_ERROR: "An unexpected error occurred. Please try again.",
}


class ContraSafeError(Exception):
    """Base error carrying a stable code, a user-facing message and debug details"""

    def __init__(self, code: ErrorCode, message: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class PersonalizationError(ContraSafeError):
    """Raised when personalization input fails validation or processing"""


class CalculatorInputError(ContraSafeError):
    """Raised when a cycle calculator receives unusable cycle data"""

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(ErrorCode.CALCULATOR_INVALID_INPUT, message, details)


def create_error(code: ErrorCode, details: Optional[Dict[str, Any]] = None) -> ContraSafeError:
    """Build the matching error subclass for a code with its default message."""
    if code.name.startswith("PERSONALIZATION_"):
        return PersonalizationError(code, details=details)
    if code is ErrorCode.CALCULATOR_INVALID_INPUT:
        return CalculatorInputError(details=details)
    return ContraSafeError(code, details=details)


def to_error_payload(error: BaseException) -> Dict[str, Any]:
    """
    JSON-serializable error body for API responses.

    Non-domain exceptions are reported as UNKNOWN_ERROR with their text kept
    in details so the caller never sees a raw traceback message as the
    user-facing text.
    """
    if isinstance(error, ContraSafeError):
        return {
            "code": error.code.value,
            "message": error.message,
            "details": error.details,
        }
    return {
        "code": ErrorCode.UNKNOWN_ERROR.value,
        "message": ERROR_MESSAGES[ErrorCode.UNKNOWN_ERROR],
        "details": {"error": str(error)},
    }
