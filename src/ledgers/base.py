"""Shared plumbing for the session-backed access and presence ledgers."""

from __future__ import annotations

import logging
from contextlib import closing
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import settings
from ledgers.errors import LedgerKind, StorageFailure
from ledgers.locks import LedgerLockRegistry, default_lock_registry
from time_utils import NowProvider, local_now, split_local

if TYPE_CHECKING:
    from ledgers.archival import ArchivalPipeline, ArchivalResult
    from ledgers.catalog import ArchiveReport, ReportCatalog
    from ledgers.retention import RetentionMonitor

logger = logging.getLogger(__name__)

PURGE_BATCH_SIZE = 500


class SessionLedger:
    """Base class for a ledger stored in one SQLAlchemy-mapped table."""

    kind: ClassVar[LedgerKind]
    model: ClassVar[Any]

    def __init__(
        self,
        session_factory: Callable[[], Session],
        *,
        now_provider: NowProvider | None = None,
        display_date_format: str | None = None,
        locks: LedgerLockRegistry | None = None,
        monitor: RetentionMonitor | None = None,
        pipeline: ArchivalPipeline | None = None,
        catalog: ReportCatalog | None = None,
    ) -> None:
        """Initialize the ledger with its storage and rotation collaborators."""
        self._session_factory = session_factory
        self._now_provider = now_provider or local_now
        self._display_date_format = (
            display_date_format or settings.reports.display_date_format
        )
        self._lock = (locks or default_lock_registry).lock_for(self.kind)
        self._monitor = monitor
        self._pipeline = pipeline
        self._catalog = catalog

    @property
    def lock(self):
        """Return the re-entrant lock serializing writes to this ledger."""
        return self._lock

    def list_all(self) -> Sequence[Any]:
        """Return every record, newest first."""
        raise NotImplementedError

    def oldest_moment(self) -> tuple[Any, Any] | None:
        """Return the raw (date, time) of the oldest record, or None when empty."""
        raise NotImplementedError

    def count(self) -> int:
        """Return the number of records currently in the ledger."""

        def handler(session: Session) -> int:
            return int(session.query(self.model).count())

        return self._execute("count", handler)

    def purge(self, record_ids: Sequence[int]) -> int:
        """Delete exactly the given records in one transaction."""
        ids = list(record_ids)
        if not ids:
            return 0

        def handler(session: Session) -> int:
            deleted = 0
            for start in range(0, len(ids), PURGE_BATCH_SIZE):
                batch = ids[start : start + PURGE_BATCH_SIZE]
                deleted += int(
                    session.query(self.model)
                    .filter(self.model.id.in_(batch))
                    .delete(synchronize_session=False)
                    or 0
                )
            session.flush()
            return deleted

        return self._execute("purge", handler)

    def generate_report(self) -> ArchivalResult:
        """Archive and purge the ledger now, regardless of record age."""
        if self._pipeline is None:
            raise RuntimeError(f"{self.kind.value} ledger has no archival pipeline configured")
        with self._lock:
            return self._pipeline.run(self)

    def list_reports(self) -> list[ArchiveReport]:
        """Return previously archived reports for this ledger."""
        if self._catalog is None:
            raise RuntimeError(f"{self.kind.value} ledger has no report catalog configured")
        return self._catalog.list(self.kind)

    def _rotate_if_due(self) -> ArchivalResult | None:
        """Run the archival pipeline when the retention window has been exceeded.

        Callers must hold ``self.lock``.
        """
        if self._monitor is None:
            return None
        decision = self._monitor.check(self)
        if not decision.due:
            return None
        if self._pipeline is None:
            logger.warning(
                "%s ledger is past retention (%s days) but no pipeline is configured",
                self.kind.value,
                decision.age_days,
            )
            return None
        logger.info(
            "%s ledger oldest record is %s days old; archiving before write",
            self.kind.value,
            decision.age_days,
        )
        return self._pipeline.run(self)

    def _now(self) -> tuple[date, time]:
        """Return the current site-local date and time from the injected clock."""
        return split_local(self._now_provider())

    def _today(self) -> date:
        """Return the current site-local date."""
        return self._now()[0]

    def _format_date(self, value: date | datetime) -> str:
        """Format a record date for display."""
        return value.strftime(self._display_date_format)

    def _execute(self, operation: str, handler):
        """Execute ledger work inside a managed session."""
        try:
            with closing(self._session_factory()) as session:
                session.expire_on_commit = False
                try:
                    result = handler(session)
                    session.commit()
                except Exception:
                    session.rollback()
                    raise
        except SQLAlchemyError as exc:
            logger.error("%s ledger %s failed: %s", self.kind.value, operation, exc)
            raise StorageFailure(self.kind, operation) from exc
        return result
