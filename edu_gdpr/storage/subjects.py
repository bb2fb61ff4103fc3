"""
Subject data store
Row-level access to one subject's data graph, keyed by subject identifier
"""

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional, Type

import structlog
from sqlalchemy import delete, inspect, select, update
from sqlalchemy.orm import Session

from ..constants import Tables
from ..utils.clock import as_utc
from .database import Base, Database
from .tables import StudentDB, StudentProgressDB, SessionDB, RevisionDB, SubjectFileDB

logger = structlog.get_logger(__name__)

TABLE_MODELS: Dict[str, Type[Base]] = {
    Tables.STUDENTS: StudentDB,
    Tables.PROGRESS: StudentProgressDB,
    Tables.SESSIONS: SessionDB,
    Tables.REVISIONS: RevisionDB,
    Tables.FILES: SubjectFileDB,
}


def _json_safe(value: Any) -> Any:
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def row_to_dict(row: Base) -> Dict[str, Any]:
    """Convert a mapped row into a JSON-safe dictionary keyed by attribute name"""
    mapper = inspect(row).mapper
    return {
        attr.key: _json_safe(getattr(row, attr.key))
        for attr in mapper.column_attrs
    }


class SubjectDataStore:
    """Storage adapter for the subject data graph"""

    def __init__(self, database: Database):
        self.database = database

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        with self.database.transaction() as session:
            yield session

    @staticmethod
    def _model(table: str) -> Type[Base]:
        try:
            return TABLE_MODELS[table]
        except KeyError:
            raise ValueError(f"Unknown subject table: {table}")

    @classmethod
    def _subject_column(cls, table: str):
        model = cls._model(table)
        return model.id if table == Tables.STUDENTS else model.student_id

    def get_subject(self, session: Session, subject_id: int) -> Optional[StudentDB]:
        """Get the subject row, or None when absent"""
        return session.get(StudentDB, subject_id)

    def subject_exists(self, subject_id: int) -> bool:
        """Check existence in a short-lived session"""
        with self.transaction() as session:
            return self.get_subject(session, subject_id) is not None

    def fetch_rows(self, session: Session, table: str, subject_id: int) -> List[Dict[str, Any]]:
        """All rows of a table belonging to the subject, as dictionaries"""
        model = self._model(table)
        column = self._subject_column(table)
        rows = session.execute(
            select(model).where(column == subject_id).order_by(model.id)
        ).scalars().all()
        return [row_to_dict(row) for row in rows]

    def update_rows(self, session: Session, table: str, subject_id: int,
                    values: Dict[str, Any]) -> int:
        """Rewrite fields on every subject row of a table; returns affected count"""
        model = self._model(table)
        column = self._subject_column(table)
        # Attribute names differ from some column names
        mapped = {getattr(model, key): value for key, value in values.items()}
        result = session.execute(
            update(model)
            .where(column == subject_id)
            .values(mapped)
            .execution_options(synchronize_session=False)
        )
        logger.debug("Updated subject rows", table=table, subject_id=subject_id,
                     count=result.rowcount)
        return result.rowcount

    def delete_rows(self, session: Session, table: str, subject_id: int) -> int:
        """Physically delete every subject row of a table; returns affected count"""
        model = self._model(table)
        column = self._subject_column(table)
        result = session.execute(
            delete(model)
            .where(column == subject_id)
            .execution_options(synchronize_session=False)
        )
        logger.debug("Deleted subject rows", table=table, subject_id=subject_id,
                     count=result.rowcount)
        return result.rowcount
