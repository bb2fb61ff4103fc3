"""
Tabular rendering of exports

Every leaf of the bundle becomes a (table, field, value) row. Collection
elements are prefixed ``record_<i>``, nested objects use dotted paths and
nested arrays use ``name[<i>]``. The CSV encoding quotes every field and
doubles embedded quotes, so ``parse_csv`` reverses ``render_csv`` exactly.
"""

from typing import Any, Iterable, List, Mapping
import csv
import io
import json

from ..constants import TabularFormat
from ..exceptions import ValidationError
from .models import ExportBundle, ExportDocument, ExportFormat, TabularRow


def format_scalar(value: Any) -> str:
    """Stringify a leaf using JSON literal spelling"""
    if value is None:
        return TabularFormat.NULL_LITERAL
    if value is True:
        return TabularFormat.TRUE_LITERAL
    if value is False:
        return TabularFormat.FALSE_LITERAL
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return str(value)


def _flatten(table: str, value: Any, path: str, rows: List[TabularRow]) -> None:
    if isinstance(value, Mapping):
        for key, child in value.items():
            _flatten(table, child, f"{path}.{key}" if path else str(key), rows)
    elif isinstance(value, (list, tuple)):
        for index, child in enumerate(value):
            _flatten(table, child, f"{path}[{index}]", rows)
    else:
        rows.append(TabularRow(table, path or table, format_scalar(value)))


def flatten_sections(sections: Mapping[str, Any]) -> List[TabularRow]:
    """Flatten table-keyed data into rows, preserving section order"""
    rows: List[TabularRow] = []
    for table, value in sections.items():
        if isinstance(value, (list, tuple)):
            for index, record in enumerate(value):
                _flatten(table, record, f"record_{index}", rows)
        else:
            _flatten(table, value, "", rows)
    return rows


def to_tabular(bundle: ExportBundle) -> List[TabularRow]:
    return flatten_sections(bundle.sections())


def render_csv(rows: Iterable[TabularRow]) -> str:
    buffer = io.StringIO(newline="")
    buffer.write(TabularFormat.DELIMITER.join(TabularFormat.HEADER))
    buffer.write(TabularFormat.LINE_TERMINATOR)

    writer = csv.writer(
        buffer,
        delimiter=TabularFormat.DELIMITER,
        quotechar=TabularFormat.QUOTE_CHAR,
        quoting=csv.QUOTE_ALL,
        doublequote=True,
        lineterminator=TabularFormat.LINE_TERMINATOR,
    )
    for row in rows:
        writer.writerow((row.table, row.field, row.value))
    return buffer.getvalue()


def parse_csv(text: str) -> List[TabularRow]:
    """
    Parse CSV produced by render_csv back into rows.

    Raises:
        ValidationError: missing header or a row without exactly three fields
    """
    reader = csv.reader(
        io.StringIO(text, newline=""),
        delimiter=TabularFormat.DELIMITER,
        quotechar=TabularFormat.QUOTE_CHAR,
        doublequote=True,
    )
    header = next(reader, None)
    if header is None or tuple(header) != TabularFormat.HEADER:
        raise ValidationError("Tabular export is missing its header", field="header")

    rows = []
    for line_number, fields in enumerate(reader, start=2):
        if len(fields) != 3:
            raise ValidationError(
                "Tabular export row must have three fields",
                field="row",
                details={"line": line_number, "fields": len(fields)}
            )
        rows.append(TabularRow(*fields))
    return rows


def render_export(bundle: ExportBundle, export_format: ExportFormat) -> ExportDocument:
    """Render a bundle as a downloadable JSON or CSV document"""
    export_format = ExportFormat(export_format)
    if export_format == ExportFormat.CSV:
        content = render_csv(to_tabular(bundle)).encode("utf-8")
        media_type = "text/csv; charset=utf-8"
    else:
        content = json.dumps(bundle.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")
        media_type = "application/json"

    return ExportDocument(
        content=content,
        media_type=media_type,
        filename=f"subject_{bundle.subject_id}_data.{export_format.value}",
        format=export_format,
    )
