"""
Audit trail for personal-data operations
"""

from .models import ActorContext, AuditAction, AuditEntry, AuditPage
from .storage import AuditLogDB, AuditStorage
from .logger import AuditTrailLogger

__all__ = [
    "ActorContext",
    "AuditAction",
    "AuditEntry",
    "AuditPage",
    "AuditLogDB",
    "AuditStorage",
    "AuditTrailLogger",
]
