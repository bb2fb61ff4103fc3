"""
Data erasure (right to be forgotten)
"""

from .models import ErasureMode, ErasureResult
from .anonymizer import AnonymizationRule, SUBJECT_RULES
from .engine import DataErasureEngine

__all__ = [
    "ErasureMode",
    "ErasureResult",
    "AnonymizationRule",
    "SUBJECT_RULES",
    "DataErasureEngine",
]
