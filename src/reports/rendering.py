"""Report rendering for archived ledger snapshots."""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol, Sequence

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape

from ledgers.errors import LedgerKind, RenderFailure
from time_utils import NowProvider, local_now

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

_TEMPLATE_MAP = {
    LedgerKind.ACCESS: "access_report.html.j2",
    LedgerKind.PRESENCE: "presence_report.html.j2",
}


@dataclass(frozen=True)
class RenderedReport:
    """A rendered document ready to be persisted."""

    content: bytes
    media_type: str
    extension: str


class ReportRenderer(Protocol):
    """Turn a ledger snapshot into a document."""

    def render(self, kind: LedgerKind, rows: Sequence[object]) -> RenderedReport:
        """Render the rows or raise RenderFailure."""


class HtmlReportRenderer:
    """Render ledger snapshots to standalone HTML with Jinja2 templates."""

    def __init__(
        self,
        template_dir: str | Path | None = None,
        *,
        site_name: str = "doorlog",
        now_provider: NowProvider | None = None,
    ) -> None:
        """Initialize the renderer with a template directory."""
        self._env = Environment(
            loader=FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "htm", "xml", "j2"]),
        )
        self._site_name = site_name
        self._now_provider = now_provider or local_now

    def render(self, kind: LedgerKind, rows: Sequence[object]) -> RenderedReport:
        """Render ``rows`` with the template registered for ``kind``."""
        template_name = _TEMPLATE_MAP.get(kind)
        if template_name is None:
            raise RenderFailure(f"no report template for ledger kind {kind!r}")
        try:
            template = self._env.get_template(template_name)
            html = template.render(
                kind=kind.value,
                rows=list(rows),
                site_name=self._site_name,
                generated_at=_format_generated_at(self._now_provider()),
            )
        except TemplateError as exc:
            raise RenderFailure(f"failed to render {template_name}: {exc}") from exc
        return RenderedReport(
            content=html.encode("utf-8"),
            media_type="text/html",
            extension="html",
        )


class PdfReportRenderer:
    """Render ledger snapshots to PDF by printing the HTML report with WeasyPrint."""

    def __init__(
        self,
        html_renderer: HtmlReportRenderer,
        *,
        base_url: str | Path | None = None,
    ) -> None:
        self._html_renderer = html_renderer
        self._base_url = str(base_url or TEMPLATE_DIR)

    def render(self, kind: LedgerKind, rows: Sequence[object]) -> RenderedReport:
        """Render ``rows`` to HTML, then print the page to PDF bytes."""
        html = self._html_renderer.render(kind, rows).content.decode("utf-8")
        try:
            weasyprint = importlib.import_module("weasyprint")
            pdf_bytes = weasyprint.HTML(string=html, base_url=self._base_url).write_pdf()
        except Exception as exc:
            raise RenderFailure(f"failed to print {kind.value} report to PDF: {exc}") from exc
        return RenderedReport(
            content=pdf_bytes,
            media_type="application/pdf",
            extension="pdf",
        )


def build_renderer(
    output_format: str,
    template_dir: str | Path | None = None,
    *,
    site_name: str = "doorlog",
    now_provider: NowProvider | None = None,
) -> ReportRenderer:
    """Return the renderer for a configured output format."""
    html_renderer = HtmlReportRenderer(template_dir, site_name=site_name, now_provider=now_provider)
    if output_format == "html":
        return html_renderer
    if output_format == "pdf":
        return PdfReportRenderer(html_renderer, base_url=template_dir)
    raise ValueError(f"unsupported report format: {output_format!r}")


def _format_generated_at(value: datetime) -> str:
    """Format the generation timestamp shown in report headers."""
    return value.strftime("%d/%m/%Y %H:%M")
