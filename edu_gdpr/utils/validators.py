"""
Validators for the GDPR data-lifecycle subsystem

Provides validation utilities for subject identifiers, contact emails,
pagination parameters and audit messages.
"""

import re
import logging
from typing import Any, Optional, Tuple

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

# =============================================================================
# REGEX PATTERNS
# =============================================================================

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")

# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def validate_subject_id(
    subject_id: Any,
    field_name: str = "subject_id",
) -> int:
    """
    Validate a subject identifier.

    Args:
        subject_id: Identifier to validate (int or numeric string)
        field_name: Field name for error messages

    Returns:
        Validated subject id as int

    Raises:
        ValidationError: If validation fails
    """
    if subject_id is None or isinstance(subject_id, bool):
        raise ValidationError(f"{field_name} is required", field=field_name)

    if isinstance(subject_id, str):
        subject_id = subject_id.strip()
        if not subject_id.isdigit():
            raise ValidationError(f"{field_name} must be a positive integer", field=field_name)
        subject_id = int(subject_id)

    if not isinstance(subject_id, int):
        raise ValidationError(f"{field_name} must be a positive integer", field=field_name)

    if subject_id <= 0:
        raise ValidationError(f"{field_name} must be a positive integer", field=field_name)

    return subject_id


def validate_email(
    email: Any,
    field_name: str = "contact_email",
    required: bool = True
) -> Optional[str]:
    """
    Validate a contact email address.

    Raises:
        ValidationError: If validation fails
    """
    if email is None or (isinstance(email, str) and not email.strip()):
        if required:
            raise ValidationError(f"{field_name} is required", field=field_name)
        return None

    if not isinstance(email, str):
        raise ValidationError(f"{field_name} must be a string", field=field_name)

    email = email.strip()

    if len(email) > 255 or not EMAIL_PATTERN.match(email):
        raise ValidationError(f"{field_name} is not a valid email address", field=field_name)

    return email


def validate_pagination(
    limit: Any,
    offset: Any,
    max_limit: int = 500
) -> Tuple[int, int]:
    """
    Validate limit/offset pagination parameters.

    Returns:
        Tuple of (limit, offset)

    Raises:
        ValidationError: If either value is out of range
    """
    try:
        limit_int = int(limit)
        offset_int = int(offset)
    except (TypeError, ValueError):
        raise ValidationError("limit and offset must be integers", field="pagination")

    if limit_int < 1 or limit_int > max_limit:
        logger.debug("Rejected page limit %d (max %d)", limit_int, max_limit)
        raise ValidationError(
            f"limit must be between 1 and {max_limit}",
            field="limit",
            details={"max_limit": max_limit}
        )

    if offset_int < 0:
        raise ValidationError("offset cannot be negative", field="offset")

    return limit_int, offset_int


def sanitize_audit_message(message: str, max_length: int = 1000) -> str:
    """
    Sanitize a message for audit logging.

    Args:
        message: Message to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized message safe for logging
    """
    if not message:
        return ""

    # Truncate if too long
    if len(message) > max_length:
        logger.debug("Truncating audit message of %d characters", len(message))
        message = message[:max_length] + "...[truncated]"

    # Remove potential log injection characters
    message = message.replace("\n", " ").replace("\r", " ")

    # Remove potential control characters
    message = ''.join(c for c in message if c.isprintable() or c == ' ')

    return message
