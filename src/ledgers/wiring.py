"""Assemble ledgers and their archival collaborators from settings."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from sqlalchemy.orm import Session

from config import Settings, settings as default_settings
from ledgers.access import AccessLedger
from ledgers.archival import ArchivalPipeline
from ledgers.catalog import ReportCatalog
from ledgers.errors import LedgerKind
from ledgers.locks import LedgerLockRegistry
from ledgers.presence import PresenceLedger
from ledgers.retention import RetentionMonitor
from ledgers.taps import TapRecorder
from reports.rendering import ReportRenderer, build_renderer
from reports.storage import ReportStore
from time_utils import NowProvider, local_now


@dataclass(frozen=True)
class LedgerSet:
    """Both ledgers wired to shared rotation collaborators."""

    access: AccessLedger
    presence: PresenceLedger
    pipeline: ArchivalPipeline
    catalog: ReportCatalog
    taps: TapRecorder

    def ledger(self, kind: LedgerKind) -> AccessLedger | PresenceLedger:
        """Return the ledger for a kind."""
        if kind is LedgerKind.ACCESS:
            return self.access
        return self.presence


def build_ledgers(
    session_factory: Callable[[], Session] | None = None,
    *,
    config: Settings | None = None,
    now_provider: NowProvider | None = None,
    renderer: ReportRenderer | None = None,
    store: ReportStore | None = None,
    locks: LedgerLockRegistry | None = None,
) -> LedgerSet:
    """Build the access and presence ledgers with retention and archival."""
    cfg = config or default_settings
    if session_factory is None:
        from services.database import get_sync_session

        session_factory = get_sync_session
    clock = now_provider or local_now
    store = store or ReportStore(Path(cfg.reports.root_dir), cfg.reports.route_prefix)
    renderer = renderer or build_renderer(
        cfg.reports.output_format,
        cfg.reports.template_dir,
        site_name=cfg.site.name,
        now_provider=clock,
    )
    catalog = ReportCatalog(store)
    pipeline = ArchivalPipeline(renderer, store, catalog)

    access = AccessLedger(
        session_factory,
        now_provider=clock,
        display_date_format=cfg.reports.display_date_format,
        locks=locks,
        monitor=RetentionMonitor(cfg.retention.access_days, now_provider=clock),
        pipeline=pipeline,
        catalog=catalog,
    )
    presence = PresenceLedger(
        session_factory,
        now_provider=clock,
        display_date_format=cfg.reports.display_date_format,
        locks=locks,
        monitor=RetentionMonitor(cfg.retention.presence_days, now_provider=clock),
        pipeline=pipeline,
        catalog=catalog,
    )
    return LedgerSet(
        access=access,
        presence=presence,
        pipeline=pipeline,
        catalog=catalog,
        taps=TapRecorder(access, presence),
    )
