"""
Constants for the GDPR data-lifecycle subsystem

Centralized identifiers for tables, data-type tags, anonymization
placeholders and error codes.
"""

from datetime import date
from typing import Final, Tuple

# =============================================================================
# SERVICE IDENTIFICATION
# =============================================================================

SERVICE_NAME: Final[str] = "edu-gdpr-lifecycle"
SERVICE_VERSION: Final[str] = "0.1.0"

# =============================================================================
# SUBJECT DATA GRAPH
# =============================================================================

class Tables:
    """Table names of the subject data graph"""
    STUDENTS: Final[str] = "students"
    PROGRESS: Final[str] = "student_progress"
    SESSIONS: Final[str] = "sessions"
    REVISIONS: Final[str] = "revisions"
    FILES: Final[str] = "gdpr_files"

    # Children before parents
    HARD_DELETE_ORDER: Final[Tuple[str, ...]] = (
        FILES, REVISIONS, SESSIONS, PROGRESS, STUDENTS
    )


class DataTypes:
    """Data-type tags used in exports and audit entries"""
    STUDENT: Final[str] = "student"
    PROGRESS: Final[str] = "progress"
    SESSIONS: Final[str] = "sessions"
    REVISIONS: Final[str] = "revisions"
    FILES: Final[str] = "files"

    ALL_DATA: Final[str] = "ALL_DATA"
    CONSENT_REQUEST: Final[str] = "CONSENT_REQUEST"

    EXPORTED: Final[Tuple[str, ...]] = (STUDENT, PROGRESS, SESSIONS, REVISIONS, FILES)


# =============================================================================
# CONSENT TOKENS
# =============================================================================

class TokenDefaults:
    """Consent token parameters"""
    ENTROPY_BYTES: Final[int] = 32          # 256 bits
    HEX_LENGTH: Final[int] = 64             # fixed width rendering
    EXPIRY_DAYS: Final[int] = 30


# =============================================================================
# ANONYMIZATION
# =============================================================================

class AnonymizationDefaults:
    """Placeholder values written by the anonymize erasure mode"""
    GIVEN_NAME: Final[str] = "Anonyme"
    FAMILY_NAME_PREFIX: Final[str] = "Utilisateur"
    FAMILY_NAME_SUFFIX_LENGTH: Final[int] = 8
    BIRTH_DATE: Final[date] = date(2000, 1, 1)
    CURRENT_LEVEL: Final[str] = "Niveau"
    MASCOT_TYPE: Final[str] = "default"
    MASCOT_COLOR: Final[str] = "#ff6b35"
    FILE_NAME: Final[str] = "fichier_anonymise.dat"
    # Followed by the file row id
    FILE_PATH_PREFIX: Final[str] = "/anonymise/"


# =============================================================================
# AUDIT
# =============================================================================

class AuditOutcomes:
    """Audit entry outcomes"""
    SUCCESS: Final[str] = "success"
    FAILURE: Final[str] = "failure"


# =============================================================================
# TABULAR EXPORT
# =============================================================================

class TabularFormat:
    """CSV layout of the tabular export"""
    HEADER: Final[Tuple[str, str, str]] = ("Table", "Field", "Value")
    DELIMITER: Final[str] = ","
    QUOTE_CHAR: Final[str] = '"'
    LINE_TERMINATOR: Final[str] = "\n"
    NULL_LITERAL: Final[str] = "null"
    TRUE_LITERAL: Final[str] = "true"
    FALSE_LITERAL: Final[str] = "false"


# =============================================================================
# ERROR CODES
# =============================================================================

class ErrorCodes:
    """Standardized error codes for the lifecycle subsystem"""
    UNKNOWN_ERROR: Final[str] = "UNKNOWN_ERROR"
    VALIDATION_ERROR: Final[str] = "VALIDATION_ERROR"

    INVALID_SUBJECT: Final[str] = "INVALID_SUBJECT"
    SUBJECT_NOT_FOUND: Final[str] = "SUBJECT_NOT_FOUND"
    CONSENT_INVALID: Final[str] = "CONSENT_INVALID"
    ERASURE_INCOMPLETE: Final[str] = "ERASURE_INCOMPLETE"
    AUDIT_WRITE_FAILED: Final[str] = "AUDIT_WRITE_FAILED"
    STORAGE_UNAVAILABLE: Final[str] = "STORAGE_UNAVAILABLE"
    OPERATION_TIMEOUT: Final[str] = "OPERATION_TIMEOUT"
