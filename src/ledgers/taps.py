"""Translate badge taps into ledger writes."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ledgers.access import AccessLedger
from ledgers.presence import PresenceLedger
from models import AccessEntry, PresenceEntry

logger = logging.getLogger(__name__)

ACTION_ENTRY = "entry"
ACTION_EXIT = "exit"


@dataclass(frozen=True)
class PresenceTapResult:
    """Which side of the interval a presence tap recorded."""

    action: str
    record: PresenceEntry


class TapRecorder:
    """Route reader taps to the access and presence ledgers.

    Badge validity against the permitted-time policy is decided upstream and
    arrives here as a boolean.
    """

    def __init__(self, access: AccessLedger, presence: PresenceLedger) -> None:
        """Initialize the recorder with both ledgers."""
        self._access = access
        self._presence = presence

    def access_tap(self, person_name: str, badge_id: str, granted: bool) -> AccessEntry:
        """Record a tap at an access point."""
        return self._access.append(person_name, badge_id, granted)

    def presence_tap(self, person_name: str, valid: bool) -> PresenceTapResult:
        """Record a presence tap as an exit when an interval is open, else an entry."""
        with self._presence.lock:
            today = self._presence.find_today(person_name)
            if today is not None and today.is_open:
                record = self._presence.record_exit(person_name, valid)
                action = ACTION_EXIT
            else:
                record = self._presence.record_entry(person_name, valid)
                action = ACTION_ENTRY
        logger.info("Presence %s recorded for %s", action, person_name)
        return PresenceTapResult(action=action, record=record)
