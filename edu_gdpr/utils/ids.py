"""
ID and token generation for the GDPR lifecycle subsystem
Consent tokens, request identifiers and anonymous identifiers
"""

import uuid
import secrets
import structlog

from ..constants import TokenDefaults

logger = structlog.get_logger(__name__)


def generate_consent_token() -> str:
    """Generate a 256-bit consent token rendered as fixed-width hex"""
    return secrets.token_hex(TokenDefaults.ENTROPY_BYTES)


def generate_request_id() -> str:
    """Generate consent request ID"""
    return str(uuid.uuid4())


def generate_audit_id() -> str:
    """Generate audit event ID"""
    return str(uuid.uuid4())


def generate_anonymous_id() -> str:
    """Generate a fresh identifier with no link to the subject"""
    return uuid.uuid4().hex


def generate_trace_id() -> str:
    """Generate trace ID for request tracking"""
    return f"trace_{uuid.uuid4().hex}"


def is_consent_token_format(value: str) -> bool:
    """Check a presented token has the issued shape"""
    if not value or not isinstance(value, str):
        return False
    if len(value) != TokenDefaults.HEX_LENGTH:
        return False
    try:
        int(value, 16)
    except ValueError:
        return False
    return True
