"""
Export models
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, NamedTuple

from pydantic import BaseModel, Field, field_validator

from ..constants import DataTypes
from ..utils.clock import as_utc


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class TabularRow(NamedTuple):
    """One (table, field path, value) triple of the tabular export"""
    table: str
    field: str
    value: str


class ExportBundle(BaseModel):
    """Complete snapshot of one subject's data graph"""
    subject_id: int
    student: Dict[str, Any]
    progress: List[Dict[str, Any]] = Field(default_factory=list)
    sessions: List[Dict[str, Any]] = Field(default_factory=list)
    revisions: List[Dict[str, Any]] = Field(default_factory=list)
    files: List[Dict[str, Any]] = Field(default_factory=list)
    exported_at: datetime
    data_types: List[str] = Field(default_factory=lambda: list(DataTypes.EXPORTED))

    @field_validator("exported_at", mode="before")
    @classmethod
    def ensure_timezone(cls, v):
        if isinstance(v, datetime):
            return as_utc(v)
        return v

    def sections(self) -> Dict[str, Any]:
        """Data sections keyed by data-type tag"""
        return {
            DataTypes.STUDENT: self.student,
            DataTypes.PROGRESS: self.progress,
            DataTypes.SESSIONS: self.sessions,
            DataTypes.REVISIONS: self.revisions,
            DataTypes.FILES: self.files,
        }

    def record_count(self) -> int:
        return 1 + len(self.progress) + len(self.sessions) + len(self.revisions) + len(self.files)

    def to_dict(self) -> Dict[str, Any]:
        data = self.sections()
        data["exported_at"] = self.exported_at.isoformat()
        data["data_types"] = list(self.data_types)
        return data


class ExportDocument(BaseModel):
    """Rendered export ready to hand to a client"""
    content: bytes
    media_type: str
    filename: str
    format: ExportFormat
