"""Ledger of paired entry/exit presence intervals."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from ledgers.base import SessionLedger
from ledgers.errors import LedgerKind, OpenEntryExists, OpenEntryNotFound, StorageFailure
from models import PresenceEntry, PresenceRecord

logger = logging.getLogger(__name__)


class PresenceLedger(SessionLedger):
    """Ledger of per-person, per-day presence intervals.

    A person may hold at most one open interval per day. Once that interval
    is closed by an exit tap, a later tap on the same day opens a new one.
    """

    kind = LedgerKind.PRESENCE
    model = PresenceRecord

    def record_entry(self, person_name: str, valid: bool) -> PresenceEntry:
        """Open a presence interval for the person starting now."""
        with self.lock:
            day, moment = self._now()

            def handler(session: Session) -> PresenceEntry:
                if _find_open(session, person_name, day) is not None:
                    raise OpenEntryExists(person_name, day)
                record = PresenceRecord(
                    person_name=person_name,
                    date=day,
                    entry_time=moment,
                    entry_valid=valid,
                )
                session.add(record)
                session.flush()
                return self._to_entry(record)

            entry = self._execute("record_entry", handler)
        logger.debug("Presence entry recorded for %s (valid=%s)", person_name, valid)
        return entry

    def record_exit(self, person_name: str, valid: bool) -> PresenceEntry:
        """Close today's open interval for the person.

        Raises OpenEntryNotFound when the person has no open interval today.
        After the update the retention window is checked against the oldest
        record in the ledger and an archival runs if it is due. The exit is
        already committed at that point, so a storage failure during the
        archival is logged and the archival is left for the next exit.
        """
        with self.lock:
            day, moment = self._now()

            def handler(session: Session) -> PresenceEntry:
                record = _find_open(session, person_name, day)
                if record is None:
                    raise OpenEntryNotFound(person_name, day)
                record.exit_time = moment
                record.exit_valid = valid
                session.flush()
                return self._to_entry(record)

            entry = self._execute("record_exit", handler)
            try:
                self._rotate_if_due()
            except StorageFailure as exc:
                logger.error(
                    "Exit recorded for %s but archival was deferred: %s", person_name, exc
                )
        logger.debug("Presence exit recorded for %s (valid=%s)", person_name, valid)
        return entry

    def find_today(self, person_name: str) -> PresenceEntry | None:
        """Return today's interval for the person, preferring an open one."""
        day = self._today()

        def handler(session: Session) -> PresenceEntry | None:
            record = _find_open(session, person_name, day)
            if record is None:
                record = (
                    session.query(PresenceRecord)
                    .filter(
                        PresenceRecord.person_name == person_name,
                        PresenceRecord.date == day,
                    )
                    .order_by(PresenceRecord.entry_time.desc(), PresenceRecord.id.desc())
                    .first()
                )
            return self._to_entry(record) if record is not None else None

        return self._execute("find_today", handler)

    def list_all(self) -> list[PresenceEntry]:
        """Return all presence records ordered by date and entry time, newest first."""

        def handler(session: Session) -> list[PresenceEntry]:
            records = (
                session.query(PresenceRecord)
                .order_by(
                    PresenceRecord.date.desc(),
                    PresenceRecord.entry_time.desc(),
                    PresenceRecord.id.desc(),
                )
                .all()
            )
            return [self._to_entry(record) for record in records]

        return self._execute("list_all", handler)

    def oldest(self) -> PresenceEntry | None:
        """Return the oldest presence record, or None when the ledger is empty."""

        def handler(session: Session) -> PresenceEntry | None:
            record = (
                session.query(PresenceRecord)
                .order_by(
                    PresenceRecord.date.asc(),
                    PresenceRecord.entry_time.asc(),
                    PresenceRecord.id.asc(),
                )
                .first()
            )
            return self._to_entry(record) if record is not None else None

        return self._execute("oldest", handler)

    def oldest_moment(self):
        """Return the raw (date, entry time) of the oldest presence record."""

        def handler(session: Session):
            row = (
                session.query(PresenceRecord.date, PresenceRecord.entry_time)
                .order_by(
                    PresenceRecord.date.asc(),
                    PresenceRecord.entry_time.asc(),
                    PresenceRecord.id.asc(),
                )
                .first()
            )
            return (row[0], row[1]) if row is not None else None

        return self._execute("oldest", handler)

    def _to_entry(self, record: PresenceRecord) -> PresenceEntry:
        """Build a detached read model from an ORM row."""
        return PresenceEntry(
            id=record.id,
            person_name=record.person_name,
            date=record.date,
            entry_time=record.entry_time,
            entry_valid=record.entry_valid,
            exit_time=record.exit_time,
            exit_valid=record.exit_valid,
            display_date=self._format_date(record.date),
        )


def _find_open(session: Session, person_name: str, day: date) -> PresenceRecord | None:
    """Return the person's open interval for the day, if any."""
    return (
        session.query(PresenceRecord)
        .filter(
            PresenceRecord.person_name == person_name,
            PresenceRecord.date == day,
            PresenceRecord.exit_time.is_(None),
        )
        .order_by(PresenceRecord.entry_time.desc(), PresenceRecord.id.desc())
        .first()
    )
