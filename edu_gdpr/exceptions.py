"""
Custom Exceptions for the GDPR data-lifecycle subsystem

Provides a unified exception hierarchy for consent verification,
export, erasure, audit logging and storage failures.
"""

from typing import Optional, Dict, Any, List

from .constants import ErrorCodes


class GDPRError(Exception):
    """
    Base exception for all lifecycle errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCodes.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses"""
        result: Dict[str, Any] = {
            "code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# SUBJECT ERRORS
# =============================================================================

class InvalidSubjectError(GDPRError):
    """Raised when a consent request names a subject that does not exist"""

    def __init__(self, subject_id: Any):
        self.subject_id = subject_id
        super().__init__(
            message=f"Subject does not exist: {subject_id}",
            error_code=ErrorCodes.INVALID_SUBJECT,
            details={"subject_id": subject_id}
        )


class SubjectNotFoundError(GDPRError):
    """Raised when the subject record is absent at export or erasure time"""

    def __init__(self, subject_id: Any):
        self.subject_id = subject_id
        super().__init__(
            message=f"Subject not found: {subject_id}",
            error_code=ErrorCodes.SUBJECT_NOT_FOUND,
            details={"subject_id": subject_id}
        )


# =============================================================================
# CONSENT ERRORS
# =============================================================================

class ConsentInvalidError(GDPRError):
    """
    Raised when a consent token does not authorize the operation.

    Covers unknown, expired, wrong-type, wrong-subject and completed tokens
    with one message and no details.
    """

    def __init__(self):
        super().__init__(
            message="Consent token is invalid",
            error_code=ErrorCodes.CONSENT_INVALID,
        )


# =============================================================================
# ERASURE ERRORS
# =============================================================================

class ErasureIncompleteError(GDPRError):
    """Raised when an erasure could not run every one of its steps"""

    def __init__(
        self,
        mode: str,
        completed_steps: List[str],
        failed_step: str,
        cause: Optional[BaseException] = None,
        rolled_back: bool = True
    ):
        self.mode = mode
        self.completed_steps = list(completed_steps)
        self.failed_step = failed_step
        self.cause = cause
        self.rolled_back = rolled_back
        super().__init__(
            message=f"Erasure ({mode}) failed at step '{failed_step}'",
            error_code=ErrorCodes.ERASURE_INCOMPLETE,
            details={
                "mode": mode,
                "completed_steps": self.completed_steps,
                "failed_step": failed_step,
                "rolled_back": rolled_back,
                "cause": type(cause).__name__ if cause else None,
            }
        )


# =============================================================================
# AUDIT ERRORS
# =============================================================================

class AuditWriteFailedError(GDPRError):
    """Raised when an audit entry cannot be written"""

    def __init__(
        self,
        action: Optional[str] = None,
        reason: Optional[str] = None,
        operation_error: Optional[str] = None
    ):
        details: Dict[str, Any] = {}
        if action:
            details["action"] = action
        if reason:
            details["reason"] = reason
        if operation_error:
            details["operation_error"] = operation_error
        super().__init__(
            message="Failed to write audit entry",
            error_code=ErrorCodes.AUDIT_WRITE_FAILED,
            details=details
        )


# =============================================================================
# INFRASTRUCTURE ERRORS
# =============================================================================

class StorageUnavailableError(GDPRError):
    """Raised when the backing store cannot be reached"""

    def __init__(self, reason: Optional[str] = None):
        details: Dict[str, Any] = {}
        if reason:
            details["reason"] = reason
        super().__init__(
            message="Storage unavailable",
            error_code=ErrorCodes.STORAGE_UNAVAILABLE,
            details=details
        )


class OperationTimeoutError(GDPRError):
    """Raised when a lifecycle operation exceeds its deadline"""

    def __init__(self, operation: str, timeout: Optional[float] = None):
        details: Dict[str, Any] = {"operation": operation}
        if timeout is not None:
            details["timeout_seconds"] = timeout
        super().__init__(
            message=f"Operation timed out: {operation}",
            error_code=ErrorCodes.OPERATION_TIMEOUT,
            details=details
        )


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ValidationError(GDPRError):
    """Raised when input validation fails"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, ErrorCodes.VALIDATION_ERROR, details)
