"""Pytest configuration for the doorlog test suite."""

import os
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


def _ensure_test_env() -> None:
    """Seed required environment variables for tests."""
    os.environ.setdefault("DOORLOG_TIMEZONE", "America/Sao_Paulo")
    os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
    os.environ.setdefault("DOORLOG_LOG_LEVEL", "WARNING")


_ensure_test_env()

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
sys.path.insert(0, str(SRC))


class FrozenClock:
    """Manually advanced clock injected as a ``now_provider``."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value

    def advance(self, **delta: float) -> None:
        self.current = self.current + timedelta(**delta)


@pytest.fixture
def clock() -> FrozenClock:
    """Provide a clock frozen at a fixed site-local moment."""
    return FrozenClock(datetime(2024, 3, 15, 9, 30, 0))


@pytest.fixture
def sqlite_session_factory() -> Generator[sessionmaker, None, None]:
    """Provide a sqlite session factory and ensure engine cleanup."""
    from models import Base

    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def report_root(tmp_path: Path) -> Path:
    """Provide an empty directory for archived reports."""
    root = tmp_path / "reports"
    root.mkdir()
    return root


@pytest.fixture
def report_store(report_root: Path):
    """Provide a report store rooted in a temporary directory."""
    from reports.storage import ReportStore

    return ReportStore(report_root)


@pytest.fixture
def ledger_set(sqlite_session_factory, clock, report_store, report_root):
    """Provide both ledgers wired to sqlite, the frozen clock and a temp report store."""
    from config import ReportsConfig, RetentionConfig, Settings
    from ledgers.locks import LedgerLockRegistry
    from ledgers.wiring import build_ledgers

    config = Settings(
        retention=RetentionConfig(access_days=30, presence_days=30),
        reports=ReportsConfig(root_dir=str(report_root), output_format="html"),
    )
    return build_ledgers(
        sqlite_session_factory,
        config=config,
        now_provider=clock,
        store=report_store,
        locks=LedgerLockRegistry(),
    )
