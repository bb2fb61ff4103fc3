"""
Storage layer for the GDPR lifecycle subsystem
Database handle and subject data graph
"""

from .database import Base, Database
from .tables import StudentDB, StudentProgressDB, SessionDB, RevisionDB, SubjectFileDB
from .subjects import SubjectDataStore, row_to_dict

__all__ = [
    "Base",
    "Database",
    "StudentDB",
    "StudentProgressDB",
    "SessionDB",
    "RevisionDB",
    "SubjectFileDB",
    "SubjectDataStore",
    "row_to_dict",
]
