"""Archive-then-purge pipeline for ledger rotation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, Sequence

from ledgers.catalog import ArchiveReport, ReportCatalog
from ledgers.errors import LedgerKind, RenderFailure, StorageFailure
from log_config import log_context
from reports.storage import ReportStore, report_file_stem

if TYPE_CHECKING:
    from reports.rendering import ReportRenderer

logger = logging.getLogger(__name__)

STATUS_ARCHIVED = "archived"
STATUS_SKIPPED_EMPTY = "skipped_empty"
STATUS_RENDER_FAILED = "render_failed"
STATUS_PERSIST_FAILED = "persist_failed"
STATUS_PURGE_FAILED = "purge_failed"


class ArchivalStage(str, Enum):
    """Where a ledger sits in the archival state machine.

    PURGED is kept after a successful run until the next run starts; a run
    that archives nothing returns the ledger to IDLE.
    """

    IDLE = "idle"
    RENDERING = "rendering"
    PURGED = "purged"


class ArchivableLedger(Protocol):
    """The slice of a ledger the pipeline reads and purges."""

    kind: LedgerKind

    @property
    def lock(self) -> Any:
        """Return the lock serializing writes to the ledger."""

    def list_all(self) -> Sequence[Any]:
        """Return every record, newest first."""

    def purge(self, record_ids: Sequence[int]) -> int:
        """Delete the given records and return how many were removed."""


@dataclass(frozen=True)
class ArchivalResult:
    """Outcome of one pipeline run."""

    kind: LedgerKind
    status: str
    report: ArchiveReport | None = None
    archived_count: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Return True when a report was written and the ledger purged."""
        return self.status == STATUS_ARCHIVED


def snapshot_bounds(rows: Sequence[Any]) -> tuple[datetime, datetime]:
    """Return the oldest and newest timestamps in a non-empty snapshot."""
    moments = [datetime.combine(*row.moment) for row in rows]
    return min(moments), max(moments)


class ArchivalPipeline:
    """Render a ledger snapshot into a report, persist it, then purge it.

    The purge only ever runs after the report is safely stored, and it only
    deletes the rows that were rendered. A failed render or write leaves the
    ledger untouched; a failed purge removes the stored report again. Either
    way the next triggering write tries again from a clean catalog.
    """

    def __init__(
        self,
        renderer: ReportRenderer,
        store: ReportStore,
        catalog: ReportCatalog | None = None,
    ) -> None:
        """Initialize the pipeline with its rendering and storage collaborators."""
        self._renderer = renderer
        self._store = store
        self._catalog = catalog or ReportCatalog(store)
        self._stage_guard = threading.Lock()
        self._stages: dict[LedgerKind, ArchivalStage] = {}

    def stage(self, kind: LedgerKind) -> ArchivalStage:
        """Return the current archival stage for a ledger kind."""
        with self._stage_guard:
            return self._stages.get(kind, ArchivalStage.IDLE)

    def run(self, ledger: ArchivableLedger) -> ArchivalResult:
        """Archive and purge the ledger's current contents."""
        kind = ledger.kind
        with ledger.lock, log_context({"ledger": kind.value}):
            snapshot = list(ledger.list_all())
            if not snapshot:
                logger.debug("Nothing to archive")
                self._set_stage(kind, ArchivalStage.IDLE)
                return ArchivalResult(kind=kind, status=STATUS_SKIPPED_EMPTY)

            oldest, newest = snapshot_bounds(snapshot)
            stem = report_file_stem(kind, oldest, newest)
            self._set_stage(kind, ArchivalStage.RENDERING)
            try:
                result = self._render_persist_purge(ledger, snapshot, stem)
            except BaseException:
                self._set_stage(kind, ArchivalStage.IDLE)
                raise
            if not result.succeeded:
                self._set_stage(kind, ArchivalStage.IDLE)
            return result

    def _render_persist_purge(
        self,
        ledger: ArchivableLedger,
        snapshot: list[Any],
        stem: str,
    ) -> ArchivalResult:
        kind = ledger.kind
        logger.info("Archiving %d records as %s", len(snapshot), stem)
        try:
            rendered = self._renderer.render(kind, snapshot)
        except Exception as exc:
            failure = exc if isinstance(exc, RenderFailure) else RenderFailure(str(exc))
            logger.error("Report rendering failed; ledger left intact: %s", failure)
            return ArchivalResult(kind=kind, status=STATUS_RENDER_FAILED, error=str(failure))

        try:
            file_name = self._store.save(kind, stem, rendered.extension, rendered.content)
        except OSError as exc:
            logger.error("Report could not be stored; ledger left intact: %s", exc)
            return ArchivalResult(kind=kind, status=STATUS_PERSIST_FAILED, error=str(exc))

        try:
            archived = ledger.purge([row.id for row in snapshot])
        except StorageFailure as exc:
            self._store.discard(kind, file_name)
            logger.error(
                "Purge failed; discarded report %s and left ledger intact: %s",
                file_name,
                exc,
            )
            return ArchivalResult(kind=kind, status=STATUS_PURGE_FAILED, error=str(exc))
        self._set_stage(kind, ArchivalStage.PURGED)
        report = self._catalog.describe(kind, file_name)
        logger.info("Archived %d records to %s", archived, report.route)
        return ArchivalResult(
            kind=kind,
            status=STATUS_ARCHIVED,
            report=report,
            archived_count=archived,
        )

    def _set_stage(self, kind: LedgerKind, stage: ArchivalStage) -> None:
        with self._stage_guard:
            self._stages[kind] = stage
