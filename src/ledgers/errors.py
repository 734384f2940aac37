"""Error types for the access and presence ledgers."""

from __future__ import annotations

from enum import Enum


class LedgerKind(str, Enum):
    """The two logical ledgers an operation can target."""

    ACCESS = "access"
    PRESENCE = "presence"


class LedgerError(Exception):
    """Base class for ledger-layer failures."""


class LedgerNotFound(LedgerError, KeyError):
    """Raised when a lookup that must succeed finds no matching record."""

    def __str__(self) -> str:
        """Return the message without KeyError's repr quoting."""
        return str(self.args[0]) if self.args else ""


class OpenEntryNotFound(LedgerNotFound):
    """Raised when an exit is recorded without an open entry for the day."""

    def __init__(self, person_name: str, day: object) -> None:
        """Initialize the error with the person and day that had no open entry."""
        super().__init__(f"no open presence entry for {person_name} on {day}")
        self.person_name = person_name
        self.day = day


class ReportNotFound(LedgerNotFound):
    """Raised when an archived report cannot be located in the catalog."""

    def __init__(self, kind: LedgerKind, file_name: str) -> None:
        """Initialize the error with the catalog coordinates that were requested."""
        super().__init__(f"archived report not found: {kind.value}/{file_name}")
        self.kind = kind
        self.file_name = file_name


class OpenEntryExists(LedgerError, ValueError):
    """Raised when an entry is recorded while the person's interval is still open."""

    def __init__(self, person_name: str, day: object) -> None:
        """Initialize the error with the person and day of the open interval."""
        super().__init__(f"presence entry already open for {person_name} on {day}")
        self.person_name = person_name
        self.day = day


class StorageFailure(LedgerError, RuntimeError):
    """Raised when the database rejects or cannot complete a ledger operation."""

    def __init__(self, kind: LedgerKind, operation: str) -> None:
        """Initialize the error with the ledger and the operation that failed."""
        super().__init__(f"{kind.value} ledger storage failure during {operation}")
        self.kind = kind
        self.operation = operation


class RenderFailure(LedgerError, RuntimeError):
    """Raised by a report renderer that could not produce a document."""


class RetentionReadAmbiguous(LedgerError, ValueError):
    """Raised when the oldest ledger record carries no usable date."""
