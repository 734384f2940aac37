"""Integration tests for rotation under concurrent writers."""

import threading
from datetime import date, time
from pathlib import Path
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config import ReportsConfig, RetentionConfig, Settings
from ledgers.errors import LedgerKind
from ledgers.locks import LedgerLockRegistry
from ledgers.wiring import build_ledgers
from models import AccessRecord, Base


@pytest.fixture
def file_session_factory(tmp_path: Path) -> Generator[sessionmaker, None, None]:
    """Provide a sqlite session factory backed by a temp file."""
    engine = create_engine(f"sqlite:///{tmp_path / 'doorlog.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)
    yield factory
    engine.dispose()


def _seed_overdue_record(factory: sessionmaker) -> None:
    session = factory()
    try:
        session.add(
            AccessRecord(
                person_name="Ana",
                badge_id="B0",
                granted=True,
                date=date(2024, 2, 4),
                time=time(8, 0),
            )
        )
        session.commit()
    finally:
        session.close()


def test_concurrent_appends_archive_exactly_once(file_session_factory, clock, tmp_path) -> None:
    """Writers racing on an overdue ledger produce one archive and keep every new tap."""
    _seed_overdue_record(file_session_factory)
    config = Settings(
        retention=RetentionConfig(access_days=30, presence_days=30),
        reports=ReportsConfig(root_dir=str(tmp_path / "reports"), output_format="html"),
    )
    locks = LedgerLockRegistry()
    writers = 6
    barrier = threading.Barrier(writers)
    errors: list[BaseException] = []

    def writer(index: int) -> None:
        # Each thread builds its own ledger set, as separate requests would.
        ledger_set = build_ledgers(
            file_session_factory,
            config=config,
            now_provider=clock,
            locks=locks,
        )
        barrier.wait()
        try:
            ledger_set.access.append(f"Person {index}", f"B{index}", True)
        except BaseException as exc:
            errors.append(exc)

    threads = [threading.Thread(target=writer, args=(index,)) for index in range(writers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert errors == []
    ledger_set = build_ledgers(file_session_factory, config=config, now_provider=clock, locks=locks)
    reports = ledger_set.catalog.list(LedgerKind.ACCESS)
    assert [report.file_name for report in reports] == [
        "access_20240204T080000_20240204T080000.html"
    ]
    rows = ledger_set.access.list_all()
    assert sorted(row.person_name for row in rows) == sorted(
        f"Person {index}" for index in range(writers)
    )
    assert all(row.date == date(2024, 3, 15) for row in rows)


def test_manual_report_and_tap_do_not_lose_records(file_session_factory, clock, tmp_path) -> None:
    """A manual archival racing with taps never drops an unrendered tap."""
    config = Settings(
        reports=ReportsConfig(root_dir=str(tmp_path / "reports"), output_format="html")
    )
    locks = LedgerLockRegistry()
    ledger_set = build_ledgers(file_session_factory, config=config, now_provider=clock, locks=locks)
    for index in range(5):
        ledger_set.access.append(f"Seed {index}", "S", True)

    archived: list[int] = []
    start = threading.Event()

    def archive() -> None:
        start.wait()
        archived.append(ledger_set.access.generate_report().archived_count)

    def tap() -> None:
        start.wait()
        for index in range(10):
            ledger_set.access.append(f"Late {index}", "L", True)

    threads = [threading.Thread(target=archive), threading.Thread(target=tap)]
    for thread in threads:
        thread.start()
    start.set()
    for thread in threads:
        thread.join(timeout=30)

    assert len(archived) == 1
    assert archived[0] + ledger_set.access.count() == 15
