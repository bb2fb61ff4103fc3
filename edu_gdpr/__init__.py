"""
Educational platform GDPR lifecycle
Consent requests, data export, data erasure and the audit trail for student data
"""

__version__ = "0.1.0"

# Core exports
from .config import GDPRConfig, get_gdpr_config
from .exceptions import (
    GDPRError,
    InvalidSubjectError,
    SubjectNotFoundError,
    ConsentInvalidError,
    ErasureIncompleteError,
    AuditWriteFailedError,
    StorageUnavailableError,
    OperationTimeoutError,
    ValidationError,
)

# Storage
from .storage import Database, SubjectDataStore

# Consent ledger
from .consent import (
    ConsentLedger, ConsentRequest, ConsentRequestType, ConsentRequestStatus
)

# Audit trail
from .audit import AuditTrailLogger, AuditAction, AuditEntry, AuditPage, ActorContext

# Export and erasure
from .export import DataExportEngine, ExportBundle, ExportFormat, to_tabular, render_csv, parse_csv
from .erasure import DataErasureEngine, ErasureMode, ErasureResult

# Coordination
from .lifecycle import LifecycleCoordinator, SubjectLockRegistry, create_coordinator

__all__ = [
    # Config
    "GDPRConfig",
    "get_gdpr_config",

    # Errors
    "GDPRError",
    "InvalidSubjectError",
    "SubjectNotFoundError",
    "ConsentInvalidError",
    "ErasureIncompleteError",
    "AuditWriteFailedError",
    "StorageUnavailableError",
    "OperationTimeoutError",
    "ValidationError",

    # Storage
    "Database",
    "SubjectDataStore",

    # Consent
    "ConsentLedger",
    "ConsentRequest",
    "ConsentRequestType",
    "ConsentRequestStatus",

    # Audit
    "AuditTrailLogger",
    "AuditAction",
    "AuditEntry",
    "AuditPage",
    "ActorContext",

    # Export
    "DataExportEngine",
    "ExportBundle",
    "ExportFormat",
    "to_tabular",
    "render_csv",
    "parse_csv",

    # Erasure
    "DataErasureEngine",
    "ErasureMode",
    "ErasureResult",

    # Coordination
    "LifecycleCoordinator",
    "SubjectLockRegistry",
    "create_coordinator",
]
