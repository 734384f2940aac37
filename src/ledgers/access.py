"""Append-only ledger of single access taps."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ledgers.base import SessionLedger
from ledgers.errors import LedgerKind
from models import AccessEntry, AccessRecord

logger = logging.getLogger(__name__)


class AccessLedger(SessionLedger):
    """Ledger of granted and denied badge taps at an access point."""

    kind = LedgerKind.ACCESS
    model = AccessRecord

    def append(self, person_name: str, badge_id: str, granted: bool) -> AccessEntry:
        """Record one tap stamped with the current date and time.

        The retention check runs first, so when the ledger is overdue the new
        record lands in a freshly archived ledger.
        """
        with self.lock:
            self._rotate_if_due()
            day, moment = self._now()

            def handler(session: Session) -> AccessEntry:
                record = AccessRecord(
                    person_name=person_name,
                    badge_id=badge_id,
                    granted=granted,
                    date=day,
                    time=moment,
                )
                session.add(record)
                session.flush()
                return self._to_entry(record)

            entry = self._execute("append", handler)
        logger.debug(
            "Access tap recorded for %s (badge %s, granted=%s)",
            person_name,
            badge_id,
            granted,
        )
        return entry

    def list_all(self) -> list[AccessEntry]:
        """Return all access records ordered by date and time, newest first."""

        def handler(session: Session) -> list[AccessEntry]:
            records = (
                session.query(AccessRecord)
                .order_by(
                    AccessRecord.date.desc(),
                    AccessRecord.time.desc(),
                    AccessRecord.id.desc(),
                )
                .all()
            )
            return [self._to_entry(record) for record in records]

        return self._execute("list_all", handler)

    def most_recent(self) -> AccessEntry | None:
        """Return the newest access record, or None when the ledger is empty."""

        def handler(session: Session) -> AccessEntry | None:
            record = (
                session.query(AccessRecord)
                .order_by(
                    AccessRecord.date.desc(),
                    AccessRecord.time.desc(),
                    AccessRecord.id.desc(),
                )
                .first()
            )
            return self._to_entry(record) if record is not None else None

        return self._execute("most_recent", handler)

    def oldest(self) -> AccessEntry | None:
        """Return the oldest access record, or None when the ledger is empty."""

        def handler(session: Session) -> AccessEntry | None:
            record = (
                session.query(AccessRecord)
                .order_by(
                    AccessRecord.date.asc(),
                    AccessRecord.time.asc(),
                    AccessRecord.id.asc(),
                )
                .first()
            )
            return self._to_entry(record) if record is not None else None

        return self._execute("oldest", handler)

    def oldest_moment(self):
        """Return the raw (date, time) of the oldest access record."""

        def handler(session: Session):
            row = (
                session.query(AccessRecord.date, AccessRecord.time)
                .order_by(
                    AccessRecord.date.asc(),
                    AccessRecord.time.asc(),
                    AccessRecord.id.asc(),
                )
                .first()
            )
            return (row[0], row[1]) if row is not None else None

        return self._execute("oldest", handler)

    def _to_entry(self, record: AccessRecord) -> AccessEntry:
        """Build a detached read model from an ORM row."""
        return AccessEntry(
            id=record.id,
            person_name=record.person_name,
            badge_id=record.badge_id,
            granted=record.granted,
            date=record.date,
            time=record.time,
            display_date=self._format_date(record.date),
        )
