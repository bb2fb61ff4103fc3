"""
Utility functions for the GDPR lifecycle subsystem
ID generation, validation, and time helpers
"""

from .clock import utcnow, as_utc
from .deadline import Deadline
from .ids import (
    generate_consent_token,
    generate_request_id,
    generate_audit_id,
    generate_anonymous_id,
    generate_trace_id,
    is_consent_token_format,
)
from .validators import (
    validate_subject_id,
    validate_email,
    validate_pagination,
    sanitize_audit_message,
)

__all__ = [
    # Time
    "utcnow",
    "as_utc",
    "Deadline",
    # ID generation
    "generate_consent_token",
    "generate_request_id",
    "generate_audit_id",
    "generate_anonymous_id",
    "generate_trace_id",
    "is_consent_token_format",
    # Validators
    "validate_subject_id",
    "validate_email",
    "validate_pagination",
    "sanitize_audit_message",
]
