"""Filesystem storage and naming for archived ledger reports."""

from __future__ import annotations

import logging
import os
import re
from datetime import datetime
from pathlib import Path

from ledgers.errors import LedgerKind

logger = logging.getLogger(__name__)

_STAMP_FORMAT = "%Y%m%dT%H%M%S"
_REPORT_NAME_RE = re.compile(
    r"^(?P<kind>[a-z]+)_(?P<start>\d{8}T\d{6})_(?P<end>\d{8}T\d{6})(?:-\d+)?\.[A-Za-z0-9]+$"
)


def report_file_stem(kind: LedgerKind, oldest: datetime, newest: datetime) -> str:
    """Return the deterministic file stem for a report covering oldest..newest."""
    return f"{kind.value}_{oldest.strftime(_STAMP_FORMAT)}_{newest.strftime(_STAMP_FORMAT)}"


def parse_report_bounds(file_name: str) -> tuple[datetime, datetime] | None:
    """Recover the covered period from a report file name, if it follows the scheme."""
    match = _REPORT_NAME_RE.match(file_name)
    if match is None:
        return None
    try:
        return (
            datetime.strptime(match.group("start"), _STAMP_FORMAT),
            datetime.strptime(match.group("end"), _STAMP_FORMAT),
        )
    except ValueError:
        return None


class ReportStore:
    """Persist rendered reports under one directory per ledger kind."""

    def __init__(self, root_dir: str | Path, route_prefix: str = "/reports/archive") -> None:
        """Initialize the store rooted at ``root_dir``."""
        self._root = Path(root_dir).expanduser()
        self._route_prefix = "/" + route_prefix.strip("/")

    @property
    def root(self) -> Path:
        """Return the root directory holding all report catalogs."""
        return self._root

    def directory(self, kind: LedgerKind) -> Path:
        """Return the catalog directory for a ledger kind."""
        return self._root / kind.value

    def route(self, kind: LedgerKind, file_name: str) -> str:
        """Return the retrieval route for a stored report."""
        return f"{self._route_prefix}/{kind.value}/{file_name}"

    def save(self, kind: LedgerKind, stem: str, extension: str, content: bytes) -> str:
        """Write a report and return the file name it was stored under.

        The name is ``<stem>.<extension>``; if a report with that exact name
        already exists a ``-N`` suffix is added rather than overwriting it.
        The content is written to a temporary file first and moved into place.
        """
        directory = self.directory(kind)
        directory.mkdir(parents=True, exist_ok=True)
        extension = extension.lstrip(".")
        file_name = f"{stem}.{extension}"
        counter = 2
        while (directory / file_name).exists():
            file_name = f"{stem}-{counter}.{extension}"
            counter += 1

        target = directory / file_name
        staging = directory / f".{file_name}.tmp"
        try:
            staging.write_bytes(content)
            os.replace(staging, target)
        except OSError:
            staging.unlink(missing_ok=True)
            raise
        logger.info("Stored %s report %s (%d bytes)", kind.value, target, len(content))
        return file_name

    def discard(self, kind: LedgerKind, file_name: str) -> None:
        """Remove a stored report whose rows could not be purged."""
        path = self.directory(kind) / file_name
        path.unlink(missing_ok=True)
        logger.warning("Discarded %s report %s", kind.value, path)
