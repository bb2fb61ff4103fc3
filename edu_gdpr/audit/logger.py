"""
Audit trail logger
Records every personal-data operation with a tamper-evident checksum
"""

from typing import Iterable, Optional, Union
import structlog

from ..config import GDPRConfig, get_gdpr_config
from ..constants import AuditOutcomes
from ..crypto.hash import constant_time_equals
from ..exceptions import AuditWriteFailedError, ValidationError
from ..utils.clock import Clock, utcnow
from ..utils.ids import generate_audit_id
from ..utils.validators import sanitize_audit_message, validate_pagination
from .models import ActorContext, AuditAction, AuditEntry, AuditPage
from .storage import AuditStorage

logger = structlog.get_logger(__name__)


class AuditTrailLogger:
    """Append-only audit logging with integrity checks"""

    def __init__(
        self,
        storage: AuditStorage,
        config: Optional[GDPRConfig] = None,
        clock: Clock = utcnow,
    ):
        self.storage = storage
        self.config = config or get_gdpr_config()
        self.clock = clock

    def record(
        self,
        action: AuditAction,
        data_type: str,
        details: str = "",
        subject_id: Optional[int] = None,
        outcome: str = AuditOutcomes.SUCCESS,
        context: Optional[ActorContext] = None,
        operation_error: Optional[str] = None,
    ) -> AuditEntry:
        """
        Append one entry.

        Args:
            operation_error: error of the operation being recorded, carried
                into AuditWriteFailedError if the write itself fails

        Raises:
            AuditWriteFailedError: the entry could not be persisted
        """
        context = context or ActorContext()
        entry = AuditEntry(
            event_id=generate_audit_id(),
            subject_id=subject_id,
            action=AuditAction(action),
            data_type=data_type,
            details=sanitize_audit_message(details),
            outcome=outcome,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            request_id=context.request_id,
            created_at=self.clock(),
        )
        entry.checksum = entry.compute_checksum()

        try:
            stored = self.storage.append(entry)
        except Exception as e:
            logger.critical("Audit write failed",
                            action=entry.action.value,
                            subject_id=subject_id,
                            data_type=data_type,
                            error=str(e),
                            operation_error=operation_error)
            raise AuditWriteFailedError(
                action=entry.action.value,
                reason=str(e),
                operation_error=operation_error,
            ) from e

        logger.info("Audit entry recorded",
                    action=stored.action.value,
                    subject_id=subject_id,
                    data_type=data_type,
                    outcome=outcome)
        return stored

    def query(
        self,
        subject_id: Optional[int],
        action: Optional[Union[AuditAction, str]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> AuditPage:
        """Entries for a subject, newest first"""
        if limit is None:
            limit = self.config.audit_page_limit_default
        limit, offset = validate_pagination(limit, offset, self.config.audit_page_limit_max)

        if action is not None:
            try:
                action = AuditAction(action)
            except ValueError:
                raise ValidationError(f"Unknown audit action: {action}", field="action")

        entries, total = self.storage.select(subject_id, action, limit, offset)
        return AuditPage(entries=entries, total=total, limit=limit, offset=offset)

    def verify_integrity(self, entries: Optional[Iterable[AuditEntry]] = None) -> bool:
        """Recompute checksums; False if any entry was altered"""
        if entries is None:
            entries = self._iter_all()

        intact = True
        for entry in entries:
            if not entry.checksum or not constant_time_equals(entry.compute_checksum(), entry.checksum):
                logger.error("Audit integrity violation", event_id=entry.event_id,
                             entry_id=entry.id)
                intact = False
        return intact

    def _iter_all(self, page_size: int = 500):
        offset = 0
        while True:
            entries, total = self.storage.select(limit=page_size, offset=offset)
            yield from entries
            offset += len(entries)
            if not entries or offset >= total:
                break
