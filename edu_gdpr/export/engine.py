"""
Data export engine
Assembles a subject's complete data graph (GDPR Articles 15 and 20)
"""

from typing import Optional
import structlog

from ..constants import DataTypes, Tables
from ..exceptions import SubjectNotFoundError
from ..utils.deadline import Deadline
from ..storage.subjects import SubjectDataStore, row_to_dict
from ..utils.clock import Clock, utcnow
from .models import ExportBundle

logger = structlog.get_logger(__name__)

# Dependent collections in export order
COLLECTIONS = (
    (DataTypes.PROGRESS, Tables.PROGRESS),
    (DataTypes.SESSIONS, Tables.SESSIONS),
    (DataTypes.REVISIONS, Tables.REVISIONS),
    (DataTypes.FILES, Tables.FILES),
)


class DataExportEngine:
    """Read-only snapshot builder for one subject"""

    def __init__(self, subjects: SubjectDataStore, clock: Clock = utcnow):
        self.subjects = subjects
        self.clock = clock

    def export_subject(self, subject_id: int, deadline: Optional[Deadline] = None) -> ExportBundle:
        """
        Collect the subject record and every dependent collection.

        Empty collections are valid and still listed in data_types.

        Raises:
            SubjectNotFoundError: subject record is absent
            OperationTimeoutError: deadline passed between reads
        """
        deadline = deadline or Deadline.never("export")

        with self.subjects.transaction() as session:
            student = self.subjects.get_subject(session, subject_id)
            if student is None:
                logger.info("Export of unknown subject", subject_id=subject_id)
                raise SubjectNotFoundError(subject_id)

            sections = {DataTypes.STUDENT: row_to_dict(student)}
            for data_type, table in COLLECTIONS:
                deadline.check(table)
                sections[data_type] = self.subjects.fetch_rows(session, table, subject_id)

        bundle = ExportBundle(
            subject_id=subject_id,
            exported_at=self.clock(),
            data_types=list(DataTypes.EXPORTED),
            **sections,
        )
        logger.info("Subject data exported", subject_id=subject_id,
                    records=bundle.record_count())
        return bundle
