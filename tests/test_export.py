"""Tests for the data export engine."""

from __future__ import annotations

import pytest

from edu_gdpr.exceptions import OperationTimeoutError, SubjectNotFoundError
from edu_gdpr.export.engine import DataExportEngine
from edu_gdpr.utils.deadline import Deadline


@pytest.fixture
def exporter(subjects, clock) -> DataExportEngine:
    return DataExportEngine(subjects, clock=clock)


def test_export_collects_the_whole_graph(exporter, subject_id, clock) -> None:
    bundle = exporter.export_subject(subject_id)

    assert bundle.subject_id == subject_id
    assert bundle.student["id"] == subject_id
    assert bundle.student["given_name"] == "Lina"
    assert bundle.student["birth_date"] == "2016-03-14"
    assert len(bundle.progress) == 2
    assert len(bundle.sessions) == 2
    assert len(bundle.revisions) == 1
    assert len(bundle.files) == 1
    assert bundle.files[0]["file_name"] == "bulletin_0.pdf"
    assert bundle.exported_at == clock.now
    assert bundle.data_types == ["student", "progress", "sessions", "revisions", "files"]
    assert bundle.record_count() == 7


def test_export_excludes_other_subjects(exporter, seed_subject, subject_id) -> None:
    other = seed_subject(given_name="Tom", progress=4)

    bundle = exporter.export_subject(subject_id)

    assert all(row["student_id"] == subject_id for row in bundle.progress)
    assert len(exporter.export_subject(other).progress) == 4


def test_empty_collections_are_still_tagged(exporter, seed_subject) -> None:
    lonely = seed_subject(given_name="Noa", progress=0, sessions=0, revisions=0, files=0)

    bundle = exporter.export_subject(lonely)

    assert bundle.progress == []
    assert bundle.sessions == []
    assert bundle.revisions == []
    assert bundle.files == []
    assert bundle.data_types == ["student", "progress", "sessions", "revisions", "files"]


def test_export_of_missing_subject(exporter) -> None:
    with pytest.raises(SubjectNotFoundError):
        exporter.export_subject(4242)


def test_export_respects_deadline(exporter, subject_id) -> None:
    with pytest.raises(OperationTimeoutError):
        exporter.export_subject(subject_id, Deadline("export", 0))
