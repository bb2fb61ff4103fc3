"""
Request and response bodies of the HTTP surface
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .audit.models import AuditEntry
from .consent.models import ConsentRequestType
from .erasure.models import ErasureMode


class ConsentRequestIn(BaseModel):
    subject_id: int = Field(..., gt=0)
    request_type: ConsentRequestType
    contact_email: str = Field(..., max_length=255)
    details: Dict[str, Any] = Field(default_factory=dict)


class ConsentRequestCreated(BaseModel):
    request_id: str
    token: str
    status: str
    expires_at: datetime


class ConsentRequestView(BaseModel):
    request_id: str
    subject_id: int
    request_type: str
    status: str
    created_at: datetime
    expires_at: datetime


class ErasureRequestIn(BaseModel):
    token: str = Field(..., min_length=1)
    mode: ErasureMode = ErasureMode.ANONYMIZE

    @field_validator("mode", mode="before")
    @classmethod
    def normalize_mode(cls, v):
        return v.strip().upper() if isinstance(v, str) else v


class ErasureOut(BaseModel):
    mode: ErasureMode
    deleted_at: datetime
    affected_records: int
    table_counts: Dict[str, int] = Field(default_factory=dict)


class AuditEntryOut(BaseModel):
    id: int
    event_id: str
    subject_id: Optional[int] = None
    action: str
    data_type: str
    details: str
    outcome: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    request_id: Optional[str] = None
    created_at: datetime
    checksum: str

    @classmethod
    def from_entry(cls, entry: AuditEntry) -> "AuditEntryOut":
        return cls(**entry.model_dump(mode="json"))


class Pagination(BaseModel):
    limit: int
    offset: int
    total: int
    has_more: bool


class AuditLogOut(BaseModel):
    entries: List[AuditEntryOut]
    pagination: Pagination


class SweepOut(BaseModel):
    removed: int


class ErrorBody(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class Envelope(BaseModel):
    """Response wrapper used by every route"""
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[ErrorBody] = None
