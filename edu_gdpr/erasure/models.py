"""
Erasure models
"""

from datetime import datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class ErasureMode(str, Enum):
    """How a subject's data is erased"""
    SOFT = "SOFT"              # deactivate only
    ANONYMIZE = "ANONYMIZE"    # scrub identifying fields, keep learning data
    HARD = "HARD"              # physically delete the whole graph

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None


class ErasureResult(BaseModel):
    """Outcome of one erasure run"""
    subject_id: int
    mode: ErasureMode
    success: bool
    affected_records: int = 0
    table_counts: Dict[str, int] = Field(default_factory=dict)
    completed_at: datetime
    error: Optional[str] = None
