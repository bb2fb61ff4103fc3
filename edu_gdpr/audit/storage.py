"""
Audit trail storage
Append and read access only; entries are never updated or deleted
"""

from typing import List, Optional, Tuple
import structlog
from sqlalchemy import Column, String, Integer, DateTime, Text, func, select

from ..storage.database import Base, Database
from .models import AuditAction, AuditEntry

logger = structlog.get_logger(__name__)


class AuditLogDB(Base):
    """SQLAlchemy model for the data processing log"""
    __tablename__ = "gdpr_data_processing_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(36), nullable=False, unique=True)
    # No foreign key: entries outlive the subject they describe
    student_id = Column(Integer, nullable=True, index=True)
    action = Column(String(20), nullable=False, index=True)
    data_type = Column(String(50), nullable=False)
    details = Column(Text)
    outcome = Column(String(20), nullable=False)
    ip_address = Column(String(45))
    user_agent = Column(Text)
    request_id = Column(String(100))
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    checksum = Column(String(64), nullable=False)


class AuditStorage:
    """Storage adapter for audit entries"""

    def __init__(self, database: Database):
        self.database = database

    def _from_db_model(self, row: AuditLogDB) -> AuditEntry:
        return AuditEntry(
            id=row.id,
            event_id=row.event_id,
            subject_id=row.student_id,
            action=AuditAction(row.action),
            data_type=row.data_type,
            details=row.details or "",
            outcome=row.outcome,
            ip_address=row.ip_address,
            user_agent=row.user_agent,
            request_id=row.request_id,
            created_at=row.created_at,
            checksum=row.checksum,
        )

    def append(self, entry: AuditEntry) -> AuditEntry:
        """Insert one entry and return it with its storage id"""
        row = AuditLogDB(
            event_id=entry.event_id,
            student_id=entry.subject_id,
            action=entry.action.value,
            data_type=entry.data_type,
            details=entry.details,
            outcome=entry.outcome,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            request_id=entry.request_id,
            created_at=entry.created_at,
            checksum=entry.checksum,
        )
        with self.database.transaction() as session:
            session.add(row)
            session.flush()
            entry_id = row.id
        return entry.model_copy(update={"id": entry_id})

    def select(
        self,
        subject_id: Optional[int] = None,
        action: Optional[AuditAction] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[AuditEntry], int]:
        """Entries newest first, plus the total count matching the filters"""
        filters = []
        if subject_id is not None:
            filters.append(AuditLogDB.student_id == subject_id)
        if action is not None:
            filters.append(AuditLogDB.action == action.value)

        with self.database.transaction() as session:
            total = session.execute(
                select(func.count(AuditLogDB.id)).where(*filters)
            ).scalar_one()
            rows = session.execute(
                select(AuditLogDB)
                .where(*filters)
                .order_by(AuditLogDB.created_at.desc(), AuditLogDB.id.desc())
                .limit(limit)
                .offset(offset)
            ).scalars().all()
            return [self._from_db_model(row) for row in rows], total
