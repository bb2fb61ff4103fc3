"""Tests for the tabular (CSV) rendering of exports."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from edu_gdpr.exceptions import ValidationError
from edu_gdpr.export.models import ExportBundle, ExportFormat, TabularRow
from edu_gdpr.export.tabular import (
    flatten_sections,
    format_scalar,
    parse_csv,
    render_csv,
    render_export,
    to_tabular,
)


def _bundle() -> ExportBundle:
    return ExportBundle(
        subject_id=1,
        student={"id": 1, "given_name": "John", "email": None, "is_connected": False},
        progress=[
            {"id": 1, "competence_code": "CE1.N1.1", "progress_percent": 50.0},
            {"id": 2, "competence_code": "CE1.N1.2", "progress_percent": 75.5},
        ],
        exported_at=datetime(2026, 1, 15, 9, 0, tzinfo=UTC),
    )


@pytest.mark.parametrize("value, expected", [
    (None, "null"),
    (True, "true"),
    (False, "false"),
    (1, "1"),
    (2.5, "2.5"),
    ("Doe", "Doe"),
    ("", ""),
])
def test_format_scalar_uses_json_literals(value, expected) -> None:
    assert format_scalar(value) == expected


def test_flatten_objects_and_collections() -> None:
    rows = flatten_sections({
        "student": {"id": 1, "prenom": "John", "profile": {"age": 25, "grade": "A"}},
        "progress": [{"id": 1, "subject": "Math"}, {"id": 2, "subject": "Science"}],
    })

    assert rows == [
        TabularRow("student", "id", "1"),
        TabularRow("student", "prenom", "John"),
        TabularRow("student", "profile.age", "25"),
        TabularRow("student", "profile.grade", "A"),
        TabularRow("progress", "record_0.id", "1"),
        TabularRow("progress", "record_0.subject", "Math"),
        TabularRow("progress", "record_1.id", "2"),
        TabularRow("progress", "record_1.subject", "Science"),
    ]


def test_flatten_nested_arrays_use_indices() -> None:
    rows = flatten_sections({"student": {"badges": ["gold", {"name": "silver"}]}})

    assert rows == [
        TabularRow("student", "badges[0]", "gold"),
        TabularRow("student", "badges[1].name", "silver"),
    ]


def test_none_values_are_emitted_not_omitted() -> None:
    rows = to_tabular(_bundle())

    assert TabularRow("student", "email", "null") in rows
    assert TabularRow("student", "is_connected", "false") in rows


def test_empty_collections_produce_no_rows() -> None:
    rows = to_tabular(_bundle())
    assert {row.table for row in rows} == {"student", "progress"}


def test_render_csv_quotes_every_field_and_doubles_quotes() -> None:
    csv_text = render_csv([
        TabularRow("student", "id", "1"),
        TabularRow("student", "prenom", 'John "The Great" Doe'),
        TabularRow("student", "description", "with, comma"),
    ])

    lines = csv_text.split("\n")
    assert lines[0] == "Table,Field,Value"
    assert lines[1] == '"student","id","1"'
    assert lines[2] == '"student","prenom","John ""The Great"" Doe"'
    assert lines[3] == '"student","description","with, comma"'
    assert csv_text.endswith("\n")


def test_render_csv_of_nothing_is_header_only() -> None:
    assert render_csv([]) == "Table,Field,Value\n"


def test_parse_csv_reverses_render_csv() -> None:
    rows = [
        TabularRow("student", "prenom", 'Zoé "Zaza"'),
        TabularRow("student", "notes", "line one\nline two\r\nline three"),
        TabularRow("student", "empty", ""),
        TabularRow("progress", "record_0.tags[1]", "a,b,,c"),
        TabularRow("files", "record_0.file_name", '""'),
        TabularRow("revisions", "record_3.score", "null"),
    ]

    assert parse_csv(render_csv(rows)) == rows


def test_parse_csv_round_trips_a_full_bundle() -> None:
    rows = to_tabular(_bundle())
    assert parse_csv(render_csv(rows)) == rows


def test_parse_csv_requires_header() -> None:
    with pytest.raises(ValidationError):
        parse_csv('"student","id","1"\n')
    with pytest.raises(ValidationError):
        parse_csv("")


def test_parse_csv_rejects_short_rows() -> None:
    with pytest.raises(ValidationError):
        parse_csv('Table,Field,Value\n"student","id"\n')


def test_render_export_csv_document() -> None:
    document = render_export(_bundle(), ExportFormat.CSV)

    assert document.filename == "subject_1_data.csv"
    assert document.media_type.startswith("text/csv")
    assert document.content.decode("utf-8").startswith("Table,Field,Value\n")


def test_render_export_json_document() -> None:
    document = render_export(_bundle(), "json")

    assert document.filename == "subject_1_data.json"
    assert document.media_type == "application/json"
    payload = json.loads(document.content)
    assert payload["student"]["given_name"] == "John"
    assert payload["data_types"] == ["student", "progress", "sessions", "revisions", "files"]
    assert payload["sessions"] == []
    assert payload["exported_at"] == "2026-01-15T09:00:00+00:00"
