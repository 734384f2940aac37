"""Catalog of archived ledger reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ledgers.errors import LedgerKind, ReportNotFound
from reports.storage import ReportStore, parse_report_bounds


@dataclass(frozen=True)
class ArchiveReport:
    """One persisted historical report for a ledger."""

    kind: LedgerKind
    file_name: str
    route: str
    covers_from: datetime | None = None
    covers_to: datetime | None = None


class ReportCatalog:
    """List and resolve archived reports kept by a ReportStore."""

    def __init__(self, store: ReportStore) -> None:
        """Initialize the catalog over an existing store."""
        self._store = store

    def list(self, kind: LedgerKind) -> list[ArchiveReport]:
        """Return archived reports for a ledger kind, ordered by file name.

        A missing catalog directory yields an empty list.
        """
        directory = self._store.directory(kind)
        if not directory.is_dir():
            return []
        reports: list[ArchiveReport] = []
        for path in sorted(directory.iterdir(), key=lambda item: item.name):
            if not path.is_file() or path.name.startswith("."):
                continue
            reports.append(self._describe(kind, path.name))
        return reports

    def resolve(self, kind: LedgerKind, file_name: str) -> Path:
        """Return the stored path for a catalog entry.

        Names containing path separators, or that do not exist, raise
        ReportNotFound.
        """
        if not file_name or Path(file_name).name != file_name or file_name.startswith("."):
            raise ReportNotFound(kind, file_name)
        path = self._store.directory(kind) / file_name
        if not path.is_file():
            raise ReportNotFound(kind, file_name)
        return path

    def describe(self, kind: LedgerKind, file_name: str) -> ArchiveReport:
        """Return the catalog entry for a stored file name."""
        return self._describe(kind, file_name)

    def _describe(self, kind: LedgerKind, file_name: str) -> ArchiveReport:
        bounds = parse_report_bounds(file_name)
        return ArchiveReport(
            kind=kind,
            file_name=file_name,
            route=self._store.route(kind, file_name),
            covers_from=bounds[0] if bounds else None,
            covers_to=bounds[1] if bounds else None,
        )
