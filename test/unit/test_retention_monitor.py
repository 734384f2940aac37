"""Unit tests for retention decisions."""

import logging
from datetime import date, datetime, time

import pytest

from ledgers.errors import LedgerKind, StorageFailure
from ledgers.retention import (
    REASON_AMBIGUOUS,
    REASON_EMPTY,
    REASON_EXPIRED,
    REASON_WITHIN_WINDOW,
    RetentionMonitor,
)


class StubLedger:
    """Ledger stand-in returning a fixed oldest moment or raising."""

    kind = LedgerKind.ACCESS

    def __init__(self, oldest=None, error: Exception | None = None) -> None:
        self._oldest = oldest
        self._error = error
        self.reads = 0

    def oldest_moment(self):
        self.reads += 1
        if self._error is not None:
            raise self._error
        return self._oldest


def _monitor(clock, threshold: int = 30) -> RetentionMonitor:
    return RetentionMonitor(threshold, now_provider=clock)


def test_empty_ledger_is_not_due(clock) -> None:
    """An empty ledger never needs archiving."""
    decision = _monitor(clock).check(StubLedger())

    assert decision.due is False
    assert decision.reason == REASON_EMPTY
    assert decision.age_days is None


@pytest.mark.parametrize(
    ("oldest_day", "due", "age"),
    [
        (date(2024, 2, 15), False, 29),
        (date(2024, 2, 14), False, 30),
        (date(2024, 2, 13), True, 31),
    ],
)
def test_threshold_is_strictly_exceeded(clock, oldest_day, due, age) -> None:
    """Records older than the window are due; the window itself is not."""
    decision = _monitor(clock).check(StubLedger((oldest_day, time(12, 0))))

    assert decision.due is due
    assert decision.age_days == age
    assert decision.oldest_date == oldest_day
    assert decision.reason == (REASON_EXPIRED if due else REASON_WITHIN_WINDOW)


def test_datetime_oldest_values_are_accepted(clock) -> None:
    """A combined timestamp is reduced to its calendar date."""
    decision = _monitor(clock).check(StubLedger((datetime(2024, 1, 1, 8, 0), None)))

    assert decision.due is True
    assert decision.oldest_date == date(2024, 1, 1)


def test_age_is_recomputed_on_every_check(clock) -> None:
    """The monitor keeps no state between checks."""
    ledger = StubLedger((date(2024, 3, 1), time(8, 0)))
    monitor = _monitor(clock)

    assert monitor.check(ledger).due is False
    clock.advance(days=20)
    assert monitor.check(ledger).due is True
    assert ledger.reads == 2


def test_unusable_date_fails_safe(clock, caplog) -> None:
    """A row without a usable date is never treated as expired."""
    caplog.set_level(logging.WARNING, logger="ledgers.retention")

    decision = _monitor(clock).check(StubLedger((None, time(8, 0))))

    assert decision.due is False
    assert decision.reason == REASON_AMBIGUOUS
    assert "ambiguous" in caplog.text


def test_storage_failure_fails_safe(clock) -> None:
    """A failed oldest-record read yields a not-due decision."""
    ledger = StubLedger(error=StorageFailure(LedgerKind.ACCESS, "oldest"))

    decision = _monitor(clock).check(ledger)

    assert decision.due is False
    assert decision.reason == REASON_AMBIGUOUS


def test_negative_threshold_rejected() -> None:
    """The retention window cannot be negative."""
    with pytest.raises(ValueError, match="threshold_days"):
        RetentionMonitor(-1)


def test_default_threshold_is_thirty_days() -> None:
    """Monitors default to a thirty day window."""
    assert RetentionMonitor().threshold_days == 30
