"""
Consent request storage
Database adapter for consent request persistence
"""

from datetime import datetime
from typing import Dict, Optional
import json
import structlog
from sqlalchemy import Column, String, Integer, DateTime, Text, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..storage.database import Base, Database
from .models import ConsentRequest, ConsentRequestStatus, ConsentRequestType

logger = structlog.get_logger(__name__)


class ConsentRequestDB(Base):
    """SQLAlchemy model for consent requests"""
    __tablename__ = "gdpr_consent_requests"

    id = Column(String(36), primary_key=True)
    # Plain column: completed requests outlive a hard delete of the subject
    student_id = Column(Integer, nullable=False, index=True)
    request_type = Column(String(50), nullable=False)
    request_token = Column(String(64), nullable=False, unique=True, index=True)
    status = Column(String(20), nullable=False, index=True)
    contact_email = Column(String(255), nullable=False)
    request_details = Column(Text)  # JSON string

    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    verified_at = Column(DateTime(timezone=True))
    processed_at = Column(DateTime(timezone=True))


class ConsentStorage:
    """Storage adapter for consent requests"""

    def __init__(self, database: Database):
        self.database = database

    def _to_db_model(self, request: ConsentRequest) -> ConsentRequestDB:
        """Convert ConsentRequest to database model"""
        return ConsentRequestDB(
            id=request.id,
            student_id=request.subject_id,
            request_type=request.request_type.value,
            request_token=request.token,
            status=request.status.value,
            contact_email=request.contact_email,
            request_details=json.dumps(request.details) if request.details else None,
            created_at=request.created_at,
            expires_at=request.expires_at,
            verified_at=request.verified_at,
            processed_at=request.processed_at,
        )

    def _from_db_model(self, row: ConsentRequestDB) -> ConsentRequest:
        """Convert database model to ConsentRequest"""
        details = {}
        if row.request_details:
            try:
                details = json.loads(row.request_details)
            except json.JSONDecodeError:
                logger.warning("Invalid request details JSON", request_id=row.id)

        return ConsentRequest(
            id=row.id,
            subject_id=row.student_id,
            request_type=ConsentRequestType(row.request_type),
            token=row.request_token,
            status=ConsentRequestStatus(row.status),
            contact_email=row.contact_email,
            details=details,
            created_at=row.created_at,
            expires_at=row.expires_at,
            verified_at=row.verified_at,
            processed_at=row.processed_at,
        )

    def store(self, request: ConsentRequest) -> ConsentRequest:
        """Store a new consent request"""
        try:
            with self.database.transaction() as session:
                session.add(self._to_db_model(request))
        except SQLAlchemyError as e:
            logger.error("Failed to store consent request", request_id=request.id, error=str(e))
            raise

        logger.info("Stored consent request", request_id=request.id,
                    subject_id=request.subject_id, request_type=request.request_type)
        return request

    def get(self, request_id: str) -> Optional[ConsentRequest]:
        """Get a consent request by ID"""
        with self.database.transaction() as session:
            row = session.get(ConsentRequestDB, request_id)
            return self._from_db_model(row) if row else None

    def find_by_token(self, token: str) -> Optional[ConsentRequest]:
        """Indexed lookup by token; callers still compare the token in constant time"""
        with self.database.transaction() as session:
            row = session.execute(
                select(ConsentRequestDB).where(ConsentRequestDB.request_token == token)
            ).scalar_one_or_none()
            return self._from_db_model(row) if row else None

    def transition(self, request_id: str, from_statuses: tuple,
                   to_status: ConsentRequestStatus, session: Optional[Session] = None,
                   **timestamps: datetime) -> bool:
        """
        Move a request to a new status if it is currently in one of from_statuses.

        With a session the update joins the caller's transaction and commits
        or rolls back with it.

        Returns:
            True when a row changed
        """
        if session is None:
            with self.database.transaction() as own_session:
                return self.transition(request_id, from_statuses, to_status,
                                       session=own_session, **timestamps)

        values = {"status": to_status.value, **timestamps}
        result = session.execute(
            update(ConsentRequestDB)
            .where(
                ConsentRequestDB.id == request_id,
                ConsentRequestDB.status.in_([s.value for s in from_statuses]),
            )
            .values(**values)
        )
        changed = result.rowcount > 0

        if changed:
            logger.info("Consent request status changed", request_id=request_id,
                        status=to_status.value)
        return changed

    def delete_expired_pending(self, now: datetime) -> int:
        """Delete PENDING requests whose expiry has passed"""
        with self.database.transaction() as session:
            result = session.execute(
                delete(ConsentRequestDB).where(
                    ConsentRequestDB.status == ConsentRequestStatus.PENDING.value,
                    ConsentRequestDB.expires_at < now,
                )
            )
            return result.rowcount

    def count_by_status(self) -> Dict[str, int]:
        """Number of stored requests per status"""
        with self.database.transaction() as session:
            rows = session.execute(
                select(ConsentRequestDB.status, func.count(ConsentRequestDB.id))
                .group_by(ConsentRequestDB.status)
            ).all()
        return {status: count for status, count in rows}
