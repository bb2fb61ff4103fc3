"""
Consent request models
Time-boxed authorizations for GDPR operations on one subject
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils.clock import as_utc


class ConsentRequestType(str, Enum):
    """GDPR operations a consent request can authorize"""
    DATA_ACCESS = "DATA_ACCESS"                # Article 15
    DATA_DELETION = "DATA_DELETION"            # Article 17
    DATA_PORTABILITY = "DATA_PORTABILITY"      # Article 20
    CONSENT_WITHDRAWAL = "CONSENT_WITHDRAWAL"  # Article 7(3)


class ConsentRequestStatus(str, Enum):
    """Consent request status; transitions only move forward"""
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    COMPLETED = "COMPLETED"


EXPORT_REQUEST_TYPES = frozenset({
    ConsentRequestType.DATA_ACCESS,
    ConsentRequestType.DATA_PORTABILITY,
})

ERASURE_REQUEST_TYPES = frozenset({
    ConsentRequestType.DATA_DELETION,
})


class ConsentRequest(BaseModel):
    """Individual consent request"""
    id: str
    subject_id: int
    request_type: ConsentRequestType
    token: str = Field(..., repr=False, description="Opaque 256-bit hex token")
    status: ConsentRequestStatus = Field(default=ConsentRequestStatus.PENDING)
    contact_email: str
    details: Dict[str, Any] = Field(default_factory=dict)

    # Timestamps
    created_at: datetime
    expires_at: datetime
    verified_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    @field_validator("created_at", "expires_at", "verified_at", "processed_at", mode="before")
    @classmethod
    def ensure_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure timestamps have timezone info"""
        if isinstance(v, datetime):
            return as_utc(v)
        return v

    def is_expired(self, now: datetime) -> bool:
        """Expired once now reaches expires_at"""
        return now >= self.expires_at

    def is_usable(self, now: datetime) -> bool:
        """Check if the request may still authorize an operation"""
        if self.status == ConsentRequestStatus.COMPLETED:
            return False
        return not self.is_expired(now)

    def public_view(self) -> Dict[str, Any]:
        """Fields safe to return to a caller verifying a token"""
        return {
            "request_id": self.id,
            "subject_id": self.subject_id,
            "request_type": self.request_type.value,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }
