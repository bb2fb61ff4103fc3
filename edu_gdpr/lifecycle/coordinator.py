"""
Lifecycle coordinator
Single entry point for consent, export, erasure and audit queries

Every subject-scoped operation runs as: lock, verify consent, act, log.
The audit entry is written last and is attempted on failure as well.
The subject lock only serializes callers within one process; a consent
token is consumed by a conditional update in the database, so across
processes it still authorizes a single operation.
"""

from functools import partial
from typing import Any, Dict, Optional, Union
import structlog

from ..audit.logger import AuditTrailLogger
from ..audit.models import ActorContext, AuditAction, AuditPage
from ..audit.storage import AuditStorage
from ..config import GDPRConfig, get_gdpr_config, resolve_timeout
from ..consent.ledger import ConsentLedger
from ..consent.models import (
    ConsentRequest,
    ConsentRequestType,
    ERASURE_REQUEST_TYPES,
    EXPORT_REQUEST_TYPES,
)
from ..consent.storage import ConsentStorage
from ..constants import AuditOutcomes, DataTypes, SERVICE_NAME, SERVICE_VERSION
from ..erasure.engine import DataErasureEngine
from ..erasure.models import ErasureMode, ErasureResult
from ..exceptions import (
    AuditWriteFailedError,
    ConsentInvalidError,
    GDPRError,
    ValidationError,
)
from ..export.engine import DataExportEngine
from ..export.models import ExportBundle, ExportFormat
from ..storage.database import Database
from ..storage.subjects import SubjectDataStore
from ..utils.clock import Clock, utcnow
from ..utils.deadline import Deadline
from ..utils.validators import validate_subject_id
from .locks import SubjectLockRegistry

logger = structlog.get_logger(__name__)


def _error_label(error: Exception) -> str:
    if isinstance(error, GDPRError):
        return error.error_code
    return type(error).__name__


class LifecycleCoordinator:
    """Orchestrates the GDPR data lifecycle for one subject at a time"""

    def __init__(
        self,
        database: Database,
        ledger: ConsentLedger,
        exporter: DataExportEngine,
        eraser: DataErasureEngine,
        audit: AuditTrailLogger,
        locks: Optional[SubjectLockRegistry] = None,
        config: Optional[GDPRConfig] = None,
    ):
        self.database = database
        self.ledger = ledger
        self.exporter = exporter
        self.eraser = eraser
        self.audit = audit
        self.locks = locks or SubjectLockRegistry()
        self.config = config or get_gdpr_config()

    def _deadline(self, operation: str, timeout: Optional[float]) -> Deadline:
        return Deadline(operation, resolve_timeout(timeout, self.config))

    def _record_failure(
        self,
        action: AuditAction,
        data_type: str,
        description: str,
        subject_id: Optional[int],
        context: Optional[ActorContext],
        error: Exception,
    ) -> None:
        logger.error("Lifecycle operation failed",
                     action=action.value,
                     subject_id=subject_id,
                     error_code=_error_label(error),
                     error=str(error))
        self.audit.record(
            action,
            data_type,
            f"{description} failed: {_error_label(error)}",
            subject_id=subject_id,
            outcome=AuditOutcomes.FAILURE,
            context=context,
            operation_error=str(error),
        )

    # ------------------------------------------------------------------
    # Consent
    # ------------------------------------------------------------------

    def submit_consent_request(
        self,
        subject_id: Any,
        request_type: Union[ConsentRequestType, str],
        contact_email: str,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[ActorContext] = None,
    ) -> ConsentRequest:
        """Issue a consent request; the token is returned to the caller only here"""
        request = self.ledger.submit(subject_id, request_type, contact_email, details)
        self.audit.record(
            AuditAction.CREATE,
            DataTypes.CONSENT_REQUEST,
            f"Consent request {request.request_type.value} submitted",
            subject_id=request.subject_id,
            context=context,
        )
        return request

    def verify_consent(
        self,
        token: Optional[str],
        context: Optional[ActorContext] = None,
    ) -> Optional[ConsentRequest]:
        request = self.ledger.verify(token)
        if request is None:
            self.audit.record(
                AuditAction.READ,
                DataTypes.CONSENT_REQUEST,
                "Consent token rejected",
                outcome=AuditOutcomes.FAILURE,
                context=context,
            )
            return None

        self.audit.record(
            AuditAction.READ,
            DataTypes.CONSENT_REQUEST,
            f"Consent request {request.request_type.value} verified",
            subject_id=request.subject_id,
            context=context,
        )
        return request

    def sweep_expired_requests(self, context: Optional[ActorContext] = None) -> int:
        """Remove expired PENDING consent requests"""
        removed = self.ledger.sweep_expired()
        if removed:
            self.audit.record(
                AuditAction.DELETE,
                DataTypes.CONSENT_REQUEST,
                f"{removed} expired consent requests removed",
                context=context,
            )
        return removed

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def _authorize_export(self, subject_id: int, token: Optional[str]) -> Optional[ConsentRequest]:
        if token:
            return self.ledger.authorize(token, subject_id, EXPORT_REQUEST_TYPES)
        if not self.config.allow_unauthenticated_export:
            logger.warning("Export without consent token refused", subject_id=subject_id)
            raise ConsentInvalidError()
        return None

    def request_export(
        self,
        subject_id: Any,
        token: Optional[str] = None,
        export_format: Union[ExportFormat, str] = ExportFormat.JSON,
        context: Optional[ActorContext] = None,
        timeout: Optional[float] = None,
    ) -> ExportBundle:
        """
        Export a subject's data under a DATA_ACCESS or DATA_PORTABILITY token.

        The token is completed on success and cannot be reused.

        Raises:
            ConsentInvalidError: missing, unknown, expired, completed or
                mismatched token
            SubjectNotFoundError: subject record is absent
            OperationTimeoutError: deadline passed
            AuditWriteFailedError: the audit entry could not be written
        """
        subject_id = validate_subject_id(subject_id)
        try:
            export_format = ExportFormat(export_format)
        except ValueError:
            raise ValidationError(f"Unsupported export format: {export_format}", field="format")

        description = f"Data export in {export_format.value} format"
        deadline = self._deadline("export", timeout)

        try:
            with self.locks.hold(subject_id, deadline):
                request = self._authorize_export(subject_id, token)
                bundle = self.exporter.export_subject(subject_id, deadline)
                if request is not None:
                    self.ledger.claim(request.id)
                self.audit.record(
                    AuditAction.EXPORT,
                    DataTypes.ALL_DATA,
                    description,
                    subject_id=subject_id,
                    context=context,
                )
        except AuditWriteFailedError:
            raise
        except Exception as e:
            self._record_failure(AuditAction.EXPORT, DataTypes.ALL_DATA, description,
                                 subject_id, context, e)
            raise

        return bundle

    # ------------------------------------------------------------------
    # Erasure
    # ------------------------------------------------------------------

    def request_erasure(
        self,
        subject_id: Any,
        token: Optional[str],
        mode: Union[ErasureMode, str] = ErasureMode.ANONYMIZE,
        context: Optional[ActorContext] = None,
        timeout: Optional[float] = None,
    ) -> ErasureResult:
        """
        Erase a subject's data under a DATA_DELETION token.

        Consent is checked before anything is changed. The token is
        completed on success.

        Raises:
            ConsentInvalidError: token does not authorize deletion of this subject
            SubjectNotFoundError: subject record is absent
            ErasureIncompleteError: a step failed; the data graph is unchanged
            OperationTimeoutError: lock not acquired before the deadline
            AuditWriteFailedError: the audit entry could not be written
        """
        subject_id = validate_subject_id(subject_id)
        try:
            mode = ErasureMode(mode)
        except ValueError:
            raise ValidationError(f"Unsupported erasure mode: {mode}", field="mode")

        action = AuditAction.ANONYMIZE if mode == ErasureMode.ANONYMIZE else AuditAction.DELETE
        description = f"Data erasure ({mode.value})"
        deadline = self._deadline(f"erasure:{mode.value}", timeout)

        try:
            with self.locks.hold(subject_id, deadline):
                request = self.ledger.authorize(token, subject_id, ERASURE_REQUEST_TYPES)
                result = self.eraser.erase(subject_id, mode, deadline,
                                           claim=partial(self.ledger.claim, request.id))
                self.audit.record(
                    action,
                    DataTypes.ALL_DATA,
                    f"{description} affected {result.affected_records} records",
                    subject_id=subject_id,
                    context=context,
                )
        except AuditWriteFailedError:
            raise
        except Exception as e:
            self._record_failure(action, DataTypes.ALL_DATA, description,
                                 subject_id, context, e)
            raise

        return result

    # ------------------------------------------------------------------
    # Audit and status
    # ------------------------------------------------------------------

    def get_audit_log(
        self,
        subject_id: Any,
        action: Optional[Union[AuditAction, str]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> AuditPage:
        subject_id = validate_subject_id(subject_id)
        return self.audit.query(subject_id, action=action, limit=limit, offset=offset)

    def health(self) -> Dict[str, Any]:
        """Subsystem status"""
        database_ok = self.database.ping()
        status: Dict[str, Any] = {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "status": "healthy" if database_ok else "degraded",
            "database": "connected" if database_ok else "unavailable",
            "active_subject_locks": self.locks.active_keys(),
            "checked_at": utcnow().isoformat(),
        }
        if database_ok:
            status["consent_requests"] = self.ledger.status_counts()
        return status


def create_coordinator(
    database: Database,
    config: Optional[GDPRConfig] = None,
    clock: Clock = utcnow,
) -> LifecycleCoordinator:
    """Wire every lifecycle component onto one database handle"""
    config = config or get_gdpr_config()
    subjects = SubjectDataStore(database)
    return LifecycleCoordinator(
        database=database,
        ledger=ConsentLedger(ConsentStorage(database), subjects, config=config, clock=clock),
        exporter=DataExportEngine(subjects, clock=clock),
        eraser=DataErasureEngine(subjects, clock=clock),
        audit=AuditTrailLogger(AuditStorage(database), config=config, clock=clock),
        config=config,
    )
