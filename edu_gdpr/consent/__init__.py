"""
Consent ledger for GDPR requests
Token issuance, verification and single-use completion
"""

from .models import (
    ConsentRequest,
    ConsentRequestType,
    ConsentRequestStatus,
    EXPORT_REQUEST_TYPES,
    ERASURE_REQUEST_TYPES,
)
from .storage import ConsentRequestDB, ConsentStorage
from .ledger import ConsentLedger

__all__ = [
    "ConsentRequest",
    "ConsentRequestType",
    "ConsentRequestStatus",
    "EXPORT_REQUEST_TYPES",
    "ERASURE_REQUEST_TYPES",
    "ConsentRequestDB",
    "ConsentStorage",
    "ConsentLedger",
]
