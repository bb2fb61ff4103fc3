"""
Data export (portability) for GDPR subjects
"""

from .models import ExportBundle, ExportDocument, ExportFormat, TabularRow
from .engine import DataExportEngine
from .tabular import to_tabular, render_csv, parse_csv, render_export

__all__ = [
    "ExportBundle",
    "ExportDocument",
    "ExportFormat",
    "TabularRow",
    "DataExportEngine",
    "to_tabular",
    "render_csv",
    "parse_csv",
    "render_export",
]
