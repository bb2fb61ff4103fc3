"""
Audit trail models
Append-only records of personal-data operations
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
import json

from pydantic import BaseModel, Field, field_validator

from ..crypto.hash import secure_hash
from ..utils.clock import as_utc


class AuditAction(str, Enum):
    """Operations recorded on personal data"""
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    EXPORT = "EXPORT"
    ANONYMIZE = "ANONYMIZE"


class ActorContext(BaseModel):
    """Who triggered an operation, as far as the caller knows"""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None


class AuditEntry(BaseModel):
    """Individual audit entry"""
    id: Optional[int] = None  # assigned by storage
    event_id: str
    subject_id: Optional[int] = None
    action: AuditAction
    data_type: str
    details: str = ""
    outcome: str

    # Context
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None

    created_at: datetime

    # Integrity
    checksum: Optional[str] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def ensure_timezone(cls, v):
        if isinstance(v, datetime):
            return as_utc(v)
        return v

    def to_audit_string(self) -> str:
        """Canonical content string for hashing"""
        audit_data = {
            "event_id": self.event_id,
            "subject_id": self.subject_id,
            "action": self.action.value,
            "data_type": self.data_type,
            "details": self.details,
            "outcome": self.outcome,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "request_id": self.request_id,
            "created_at": self.created_at.isoformat(),
        }

        return json.dumps(audit_data, sort_keys=True, separators=(',', ':'))

    def compute_checksum(self) -> str:
        """SHA-256 over the canonical content"""
        return secure_hash(self.to_audit_string().encode('utf-8'))


class AuditPage(BaseModel):
    """One page of audit entries, newest first"""
    entries: List[AuditEntry] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.entries) < self.total

    def pagination(self) -> Dict[str, Any]:
        return {
            "limit": self.limit,
            "offset": self.offset,
            "total": self.total,
            "has_more": self.has_more,
        }
