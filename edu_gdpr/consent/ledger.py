"""
Consent ledger
Issues, verifies, completes and sweeps consent requests
"""

from datetime import timedelta
from typing import Any, Dict, Iterable, Optional, Union
import structlog
from sqlalchemy.orm import Session

from ..config import GDPRConfig, get_gdpr_config
from ..crypto.hash import constant_time_equals
from ..exceptions import ConsentInvalidError, InvalidSubjectError, ValidationError
from ..storage.subjects import SubjectDataStore
from ..utils.clock import Clock, utcnow
from ..utils.ids import generate_consent_token, generate_request_id, is_consent_token_format
from ..utils.validators import validate_email, validate_subject_id
from .models import ConsentRequest, ConsentRequestStatus, ConsentRequestType
from .storage import ConsentStorage

logger = structlog.get_logger(__name__)

# Compared against when no stored token matches, so misses cost the same as hits
_DUMMY_TOKEN = "0" * 64


class ConsentLedger:
    """
    Authority over consent request state.

    Tokens are single-use: once a request is COMPLETED, or once it expires,
    it authorizes nothing.
    """

    def __init__(
        self,
        storage: ConsentStorage,
        subjects: SubjectDataStore,
        config: Optional[GDPRConfig] = None,
        clock: Clock = utcnow,
    ):
        self.storage = storage
        self.subjects = subjects
        self.config = config or get_gdpr_config()
        self.clock = clock

    def submit(
        self,
        subject_id: Any,
        request_type: Union[ConsentRequestType, str],
        contact_email: str,
        details: Optional[Dict[str, Any]] = None,
        expires_in: Optional[timedelta] = None,
    ) -> ConsentRequest:
        """
        Create a PENDING consent request for an existing subject.

        Raises:
            InvalidSubjectError: subject row does not exist
            ValidationError: malformed identifier, type or email
        """
        subject_id = validate_subject_id(subject_id)
        contact_email = validate_email(contact_email)
        try:
            request_type = ConsentRequestType(request_type)
        except ValueError:
            raise ValidationError(f"Unknown request type: {request_type}", field="request_type")

        if not self.subjects.subject_exists(subject_id):
            logger.warning("Consent request for unknown subject", subject_id=subject_id)
            raise InvalidSubjectError(subject_id)

        now = self.clock()
        lifetime = expires_in or timedelta(days=self.config.consent_expiry_days)
        request = ConsentRequest(
            id=generate_request_id(),
            subject_id=subject_id,
            request_type=request_type,
            token=generate_consent_token(),
            status=ConsentRequestStatus.PENDING,
            contact_email=contact_email,
            details=details or {},
            created_at=now,
            expires_at=now + lifetime,
        )
        return self.storage.store(request)

    def _lookup(self, token: Optional[str]) -> Optional[ConsentRequest]:
        """Find the request owning a token, comparing in constant time"""
        if not token or not is_consent_token_format(token):
            constant_time_equals(str(token or ""), _DUMMY_TOKEN)
            return None

        request = self.storage.find_by_token(token)
        if request is None:
            constant_time_equals(token, _DUMMY_TOKEN)
            return None

        if not constant_time_equals(request.token, token):
            return None
        return request

    def _rejection(self, request: Optional[ConsentRequest]) -> Optional[str]:
        if request is None:
            return "unknown_token"
        if request.status == ConsentRequestStatus.COMPLETED:
            return "completed"
        if request.is_expired(self.clock()):
            return "expired"
        return None

    def _promote(self, request: ConsentRequest) -> Optional[ConsentRequest]:
        """PENDING -> VERIFIED; returns the current state of the request"""
        if request.status != ConsentRequestStatus.PENDING:
            return request
        self.storage.transition(
            request.id,
            (ConsentRequestStatus.PENDING,),
            ConsentRequestStatus.VERIFIED,
            verified_at=self.clock(),
        )
        return self.storage.get(request.id)

    def verify(self, token: Optional[str]) -> Optional[ConsentRequest]:
        """
        Check a token.

        Returns the request when the token is known, unexpired and not yet
        completed, None otherwise. Callers cannot tell the failure cases apart.
        """
        request = self._lookup(token)
        reason = self._rejection(request)
        if reason:
            logger.info("Consent verification failed", reason=reason)
            return None

        request = self._promote(request)
        if self._rejection(request):
            return None
        return request

    def authorize(
        self,
        token: Optional[str],
        subject_id: int,
        allowed_types: Iterable[ConsentRequestType],
    ) -> ConsentRequest:
        """
        Verify a token for one subject and one of the allowed request types.

        Raises:
            ConsentInvalidError: for every kind of failure
        """
        request = self._lookup(token)
        reason = self._rejection(request)
        if reason is None and request.subject_id != subject_id:
            reason = "subject_mismatch"
        if reason is None and request.request_type not in set(allowed_types):
            reason = "type_mismatch"

        if reason:
            logger.warning("Consent authorization denied", subject_id=subject_id,
                           reason=reason,
                           request_id=request.id if request else None)
            raise ConsentInvalidError()

        request = self._promote(request)
        if self._rejection(request):
            raise ConsentInvalidError()
        return request

    def mark_completed(self, request_id: str, session: Optional[Session] = None) -> bool:
        """
        Complete a request so its token can never be used again.

        Returns:
            True on the transition, False if it was already completed
        """
        return self.storage.transition(
            request_id,
            (ConsentRequestStatus.PENDING, ConsentRequestStatus.VERIFIED),
            ConsentRequestStatus.COMPLETED,
            session=session,
            processed_at=self.clock(),
        )

    def claim(self, request_id: str, session: Optional[Session] = None) -> None:
        """
        Complete an authorized request, failing if another caller got there first.

        Passing the session of the operation the token authorizes makes the
        claim and the operation commit or roll back together.

        Raises:
            ConsentInvalidError: the request was completed since authorization
        """
        if not self.mark_completed(request_id, session=session):
            logger.warning("Consent token already used", request_id=request_id)
            raise ConsentInvalidError()

    def sweep_expired(self) -> int:
        """Remove expired PENDING requests; VERIFIED and COMPLETED rows are kept"""
        removed = self.storage.delete_expired_pending(self.clock())
        if removed:
            logger.info("Swept expired consent requests", removed=removed)
        return removed

    def get(self, request_id: str) -> Optional[ConsentRequest]:
        return self.storage.get(request_id)

    def status_counts(self) -> Dict[str, int]:
        return self.storage.count_by_status()
