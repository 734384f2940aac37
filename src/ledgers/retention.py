"""Retention policy deciding when a ledger must be archived."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol

from ledgers.errors import LedgerKind, RetentionReadAmbiguous, StorageFailure
from time_utils import NowProvider, local_now, split_local

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 30

REASON_EMPTY = "empty"
REASON_WITHIN_WINDOW = "within_window"
REASON_EXPIRED = "expired"
REASON_AMBIGUOUS = "ambiguous_read"


class RetainedLedger(Protocol):
    """The slice of a ledger the monitor reads."""

    kind: LedgerKind

    def oldest_moment(self) -> tuple[object, object] | None:
        """Return the raw (date, time) of the oldest record, or None."""


@dataclass(frozen=True)
class RetentionDecision:
    """Outcome of one retention check."""

    due: bool
    reason: str
    age_days: int | None = None
    oldest_date: date | None = None


def oldest_record_date(value: object) -> date:
    """Coerce the stored date of the oldest record, rejecting unusable values."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise RetentionReadAmbiguous(f"oldest record has no usable date: {value!r}")


class RetentionMonitor:
    """Decide whether a ledger's oldest record has outlived the retention window.

    The age is recomputed from the ledger on every check. Any doubt about the
    oldest record (a failed read or a row without a usable date) yields a
    not-due decision, so archival never runs on an ambiguous read.
    """

    def __init__(
        self,
        threshold_days: int = DEFAULT_RETENTION_DAYS,
        *,
        now_provider: NowProvider | None = None,
    ) -> None:
        """Initialize the monitor with its window and clock."""
        if threshold_days < 0:
            raise ValueError("threshold_days must be >= 0.")
        self._threshold_days = threshold_days
        self._now_provider = now_provider or local_now

    @property
    def threshold_days(self) -> int:
        """Return the retention window in days."""
        return self._threshold_days

    def check(self, ledger: RetainedLedger) -> RetentionDecision:
        """Return whether the ledger is due for archival."""
        try:
            oldest = ledger.oldest_moment()
            if oldest is None:
                return RetentionDecision(due=False, reason=REASON_EMPTY)
            oldest_date = oldest_record_date(oldest[0])
        except (StorageFailure, RetentionReadAmbiguous) as exc:
            logger.warning(
                "Skipping %s retention check after ambiguous oldest-record read: %s",
                ledger.kind.value,
                exc,
            )
            return RetentionDecision(due=False, reason=REASON_AMBIGUOUS)

        today = split_local(self._now_provider())[0]
        age_days = (today - oldest_date).days
        due = age_days > self._threshold_days
        return RetentionDecision(
            due=due,
            reason=REASON_EXPIRED if due else REASON_WITHIN_WINDOW,
            age_days=age_days,
            oldest_date=oldest_date,
        )
