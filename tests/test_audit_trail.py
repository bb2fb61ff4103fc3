"""Tests for the audit trail logger."""

from __future__ import annotations

import pytest
from sqlalchemy import update

from edu_gdpr.audit.logger import AuditTrailLogger
from edu_gdpr.audit.models import ActorContext, AuditAction
from edu_gdpr.audit.storage import AuditLogDB, AuditStorage
from edu_gdpr.constants import AuditOutcomes, DataTypes
from edu_gdpr.exceptions import AuditWriteFailedError, StorageUnavailableError, ValidationError


class FailingAuditStorage(AuditStorage):
    """Audit storage whose writes always fail."""

    def append(self, entry):
        raise StorageUnavailableError("disk full")


@pytest.fixture
def audit(database, config, clock) -> AuditTrailLogger:
    return AuditTrailLogger(AuditStorage(database), config=config, clock=clock)


def test_record_persists_entry_with_checksum(audit, clock) -> None:
    context = ActorContext(ip_address="10.0.0.7", user_agent="pytest", request_id="req-1")

    entry = audit.record(AuditAction.EXPORT, DataTypes.ALL_DATA,
                         "Data export in json format", subject_id=7, context=context)

    assert entry.id is not None
    assert entry.checksum == entry.compute_checksum()
    assert len(entry.checksum) == 64
    assert entry.outcome == AuditOutcomes.SUCCESS

    page = audit.query(7)
    assert page.total == 1
    stored = page.entries[0]
    assert stored.event_id == entry.event_id
    assert stored.ip_address == "10.0.0.7"
    assert stored.request_id == "req-1"
    assert stored.created_at == clock.now
    assert stored.checksum == entry.checksum


def test_query_returns_newest_first(audit, clock) -> None:
    first = audit.record(AuditAction.CREATE, DataTypes.CONSENT_REQUEST, "first", subject_id=1)
    clock.advance(seconds=1)
    second = audit.record(AuditAction.EXPORT, DataTypes.ALL_DATA, "second", subject_id=1)
    # same timestamp as second; insertion order breaks the tie
    third = audit.record(AuditAction.READ, DataTypes.CONSENT_REQUEST, "third", subject_id=1)

    page = audit.query(1)

    assert [e.event_id for e in page.entries] == [third.event_id, second.event_id, first.event_id]


def test_query_filters_by_subject_and_action(audit) -> None:
    audit.record(AuditAction.EXPORT, DataTypes.ALL_DATA, "export", subject_id=1)
    audit.record(AuditAction.DELETE, DataTypes.ALL_DATA, "delete", subject_id=1)
    audit.record(AuditAction.EXPORT, DataTypes.ALL_DATA, "export", subject_id=2)
    audit.record(AuditAction.DELETE, DataTypes.CONSENT_REQUEST, "sweep")

    assert audit.query(1).total == 2
    exports = audit.query(1, action=AuditAction.EXPORT)
    assert exports.total == 1
    assert exports.entries[0].action == AuditAction.EXPORT

    by_name = audit.query(1, action="DELETE")
    assert by_name.total == 1


def test_query_paginates(audit) -> None:
    for i in range(5):
        audit.record(AuditAction.READ, DataTypes.STUDENT, f"read {i}", subject_id=3)

    page = audit.query(3, limit=2, offset=2)

    assert page.total == 5
    assert len(page.entries) == 2
    assert page.entries[0].details == "read 2"
    assert page.has_more is True
    assert page.pagination() == {"limit": 2, "offset": 2, "total": 5, "has_more": True}

    last = audit.query(3, limit=2, offset=4)
    assert last.has_more is False


def test_query_rejects_bad_pagination_and_action(audit) -> None:
    with pytest.raises(ValidationError):
        audit.query(1, limit=0)
    with pytest.raises(ValidationError):
        audit.query(1, limit=501)
    with pytest.raises(ValidationError):
        audit.query(1, offset=-1)
    with pytest.raises(ValidationError):
        audit.query(1, action="PURGE")


def test_details_are_sanitized(audit) -> None:
    entry = audit.record(AuditAction.UPDATE, DataTypes.STUDENT, "line one\nline two", subject_id=4)
    assert entry.details == "line one line two"


def test_verify_integrity_detects_tampering(audit, database) -> None:
    audit.record(AuditAction.EXPORT, DataTypes.ALL_DATA, "export", subject_id=5)
    target = audit.record(AuditAction.DELETE, DataTypes.ALL_DATA, "hard delete", subject_id=5)

    assert audit.verify_integrity() is True

    with database.transaction() as session:
        session.execute(
            update(AuditLogDB)
            .where(AuditLogDB.id == target.id)
            .values(details="nothing happened")
        )

    assert audit.verify_integrity() is False
    assert audit.verify_integrity(audit.query(5, action=AuditAction.EXPORT).entries) is True


def test_write_failure_raises_audit_write_failed(database, config, clock) -> None:
    failing = AuditTrailLogger(FailingAuditStorage(database), config=config, clock=clock)

    with pytest.raises(AuditWriteFailedError) as exc_info:
        failing.record(AuditAction.DELETE, DataTypes.ALL_DATA, "hard delete", subject_id=1,
                       operation_error="Erasure (hard) failed at step 'sessions'")

    details = exc_info.value.details
    assert details["action"] == "DELETE"
    assert details["operation_error"].startswith("Erasure (hard)")
    assert details["reason"] == "Storage unavailable"


def test_logger_exposes_no_mutation_api(audit) -> None:
    for name in ("update", "delete", "remove", "purge", "clear"):
        assert not hasattr(audit, name)
        assert not hasattr(audit.storage, name)
