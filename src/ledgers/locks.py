"""Per-ledger mutual exclusion for rotation-sensitive writes."""

from __future__ import annotations

import threading

from ledgers.errors import LedgerKind


class LedgerLockRegistry:
    """Hand out one re-entrant lock per ledger kind.

    Every write that may rotate a ledger holds its lock for the whole
    "read oldest, maybe archive, write" sequence. The locks are re-entrant so
    the archival pipeline can take the same lock when invoked from inside a
    ledger write.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._guard = threading.Lock()
        self._locks: dict[LedgerKind, threading.RLock] = {}

    def lock_for(self, kind: LedgerKind) -> threading.RLock:
        """Return the lock guarding the given ledger kind."""
        with self._guard:
            lock = self._locks.get(kind)
            if lock is None:
                lock = threading.RLock()
                self._locks[kind] = lock
            return lock


default_lock_registry = LedgerLockRegistry()
