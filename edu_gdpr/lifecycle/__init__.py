"""
Lifecycle coordination for GDPR operations
"""

from .locks import SubjectLockRegistry
from .coordinator import LifecycleCoordinator, create_coordinator

__all__ = [
    "SubjectLockRegistry",
    "LifecycleCoordinator",
    "create_coordinator",
]
