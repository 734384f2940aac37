"""Rendering and storage of archived ledger reports."""

from reports.rendering import (
    HtmlReportRenderer,
    PdfReportRenderer,
    RenderedReport,
    ReportRenderer,
    build_renderer,
)
from reports.storage import ReportStore, parse_report_bounds, report_file_stem

__all__ = [
    "HtmlReportRenderer",
    "PdfReportRenderer",
    "RenderedReport",
    "ReportRenderer",
    "ReportStore",
    "build_renderer",
    "parse_report_bounds",
    "report_file_stem",
]
