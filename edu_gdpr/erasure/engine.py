"""
Data erasure engine
Soft deactivation, anonymization and hard deletion (GDPR Article 17)
"""

from functools import partial
from typing import Callable, Dict, List, Optional, Tuple
import structlog
from sqlalchemy.orm import Session

from ..constants import Tables
from ..exceptions import ConsentInvalidError, ErasureIncompleteError, SubjectNotFoundError
from ..storage.subjects import SubjectDataStore
from ..storage.tables import StudentDB
from ..utils.clock import Clock, utcnow
from ..utils.deadline import Deadline
from ..utils.ids import generate_anonymous_id
from .anonymizer import (
    anonymized_file_values,
    anonymized_values,
    file_is_anonymized,
    unanonymized_fields,
)
from .models import ErasureMode, ErasureResult

logger = structlog.get_logger(__name__)

Step = Tuple[str, Callable[[], int]]


class DataErasureEngine:
    """
    Runs one erasure mode against one subject inside a single transaction.

    Either every step of the mode is applied or none is: a failure at any
    step rolls back the transaction and raises ErasureIncompleteError.
    """

    def __init__(self, subjects: SubjectDataStore, clock: Clock = utcnow):
        self.subjects = subjects
        self.clock = clock

    def _soft_steps(self, session: Session, student: StudentDB) -> List[Step]:
        values = {"is_connected": False, "last_access": None, "updated_at": self.clock()}
        return [
            (Tables.STUDENTS,
             partial(self.subjects.update_rows, session, Tables.STUDENTS, student.id, values)),
        ]

    def _anonymize_steps(self, session: Session, student: StudentDB) -> List[Step]:
        now = self.clock()
        subject_values = anonymized_values(student, generate_anonymous_id())
        subject_values["updated_at"] = now
        return [
            (Tables.STUDENTS,
             partial(self.subjects.update_rows, session, Tables.STUDENTS, student.id,
                     subject_values)),
            (Tables.SESSIONS,
             partial(self.subjects.update_rows, session, Tables.SESSIONS, student.id,
                     {"student_id": None})),
            (Tables.FILES,
             partial(self.subjects.update_rows, session, Tables.FILES, student.id,
                     {**anonymized_file_values(), "updated_at": now})),
        ]

    def _hard_steps(self, session: Session, student: StudentDB) -> List[Step]:
        return [
            (table, partial(self.subjects.delete_rows, session, table, student.id))
            for table in Tables.HARD_DELETE_ORDER
        ]

    def _plan(self, mode: ErasureMode, session: Session, student: StudentDB) -> List[Step]:
        if mode == ErasureMode.SOFT:
            return self._soft_steps(session, student)
        if mode == ErasureMode.HARD:
            return self._hard_steps(session, student)
        return self._anonymize_steps(session, student)

    def erase(
        self,
        subject_id: int,
        mode: ErasureMode = ErasureMode.ANONYMIZE,
        deadline: Optional[Deadline] = None,
        claim: Optional[Callable[[Session], None]] = None,
    ) -> ErasureResult:
        """
        Erase a subject's data.

        claim runs inside the erasure transaction before any step, so a
        consent token is consumed only if the erasure commits.

        Raises:
            SubjectNotFoundError: subject record is absent
            ConsentInvalidError: claim refused the token; nothing was changed
            ErasureIncompleteError: a step failed or the deadline passed;
                nothing was changed
        """
        mode = ErasureMode(mode)
        deadline = deadline or Deadline.never(f"erasure:{mode.value}")
        counts: Dict[str, int] = {}
        completed: List[str] = []
        step = "lookup"

        try:
            with self.subjects.transaction() as session:
                student = self.subjects.get_subject(session, subject_id)
                if student is None:
                    raise SubjectNotFoundError(subject_id)
                if claim is not None:
                    step = "consent"
                    claim(session)

                for step, action in self._plan(mode, session, student):
                    deadline.check(step)
                    counts[step] = action()
                    completed.append(step)
                step = "commit"
        except SubjectNotFoundError:
            logger.info("Erasure of unknown subject", subject_id=subject_id, mode=mode.value)
            raise
        except ConsentInvalidError:
            logger.warning("Erasure refused, consent already used", subject_id=subject_id,
                           mode=mode.value)
            raise
        except Exception as e:
            logger.error("Erasure failed, transaction rolled back",
                         subject_id=subject_id,
                         mode=mode.value,
                         failed_step=step,
                         completed_steps=completed,
                         error=str(e))
            raise ErasureIncompleteError(mode.value, completed, step, cause=e) from e

        result = ErasureResult(
            subject_id=subject_id,
            mode=mode,
            success=True,
            affected_records=sum(counts.values()),
            table_counts=counts,
            completed_at=self.clock(),
        )
        logger.info("Subject data erased", subject_id=subject_id, mode=mode.value,
                    affected_records=result.affected_records)
        return result

    def verify_anonymization(self, subject_id: int) -> List[str]:
        """
        List what still identifies an anonymized subject.

        An empty list means the subject record and its sessions and files
        carry no original identifying data.

        Raises:
            SubjectNotFoundError: subject record is absent
        """
        with self.subjects.transaction() as session:
            student = self.subjects.get_subject(session, subject_id)
            if student is None:
                raise SubjectNotFoundError(subject_id)

            issues = [f"{label} not anonymized" for label in unanonymized_fields(student)]

            if self.subjects.fetch_rows(session, Tables.SESSIONS, subject_id):
                issues.append("sessions still linked to subject")

            files = self.subjects.fetch_rows(session, Tables.FILES, subject_id)
            if not all(file_is_anonymized(f) for f in files):
                issues.append("file names or paths not anonymized")

        return issues
