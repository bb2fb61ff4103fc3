"""Shared fixtures: a file-backed SQLite database, a controllable clock and seeded subjects."""

from __future__ import annotations

import uuid
from datetime import UTC, date, datetime, timedelta
from typing import Iterator

import pytest

from edu_gdpr.config import GDPRConfig
from edu_gdpr.lifecycle.coordinator import LifecycleCoordinator, create_coordinator
from edu_gdpr.storage.database import Database
from edu_gdpr.storage.subjects import SubjectDataStore
from edu_gdpr.storage.tables import (
    RevisionDB,
    SessionDB,
    StudentDB,
    StudentProgressDB,
    SubjectFileDB,
)


class FakeClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def _seed_subject(
    database: Database,
    given_name: str = "Lina",
    family_name: str = "Martin",
    progress: int = 2,
    sessions: int = 2,
    revisions: int = 1,
    files: int = 1,
) -> int:
    """Insert a student with dependent rows and return its id."""
    now = datetime.now(UTC)
    with database.transaction() as session:
        student = StudentDB(
            given_name=given_name,
            family_name=family_name,
            email=f"{given_name.lower()}.{uuid.uuid4().hex[:6]}@example.com",
            birth_date=date(2016, 3, 14),
            current_level="CE1",
            school_level="CE1",
            total_points=120,
            mascot_type="dragon",
            mascot_color="#3366ff",
            last_access=now,
            is_connected=True,
        )
        session.add(student)
        session.flush()

        for i in range(progress):
            session.add(StudentProgressDB(
                student_id=student.id,
                exercise_id=100 + i,
                competence_code=f"CE1.N1.{i}",
                progress_percent=50.0,
                mastery_level="practicing",
                total_attempts=3,
            ))
        for i in range(sessions):
            session.add(SessionDB(
                id=str(uuid.uuid4()),
                student_id=student.id,
                expires_at=now + timedelta(days=1),
            ))
        for i in range(revisions):
            session.add(RevisionDB(
                student_id=student.id,
                exercise_id=200 + i,
                revision_date=date(2026, 1, 10),
                score=80,
            ))
        for i in range(files):
            session.add(SubjectFileDB(
                id=str(uuid.uuid4()),
                student_id=student.id,
                file_name=f"bulletin_{i}.pdf",
                file_path=f"/uploads/{student.id}/bulletin_{i}.pdf",
                file_size=1024,
                mime_type="application/pdf",
            ))
        return student.id


@pytest.fixture
def database(tmp_path) -> Iterator[Database]:
    db = Database(f"sqlite:///{tmp_path / 'gdpr.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 1, 15, 9, 0, tzinfo=UTC))


@pytest.fixture
def config(tmp_path) -> GDPRConfig:
    return GDPRConfig(database_url=f"sqlite:///{tmp_path / 'gdpr.db'}")


@pytest.fixture
def subjects(database: Database) -> SubjectDataStore:
    return SubjectDataStore(database)


@pytest.fixture
def seed_subject(database: Database):
    """Factory inserting further subjects into the test database."""
    return lambda **kwargs: _seed_subject(database, **kwargs)


@pytest.fixture
def subject_id(database: Database) -> int:
    return _seed_subject(database)


@pytest.fixture
def coordinator(database: Database, config: GDPRConfig, clock: FakeClock) -> LifecycleCoordinator:
    return create_coordinator(database, config, clock=clock)
