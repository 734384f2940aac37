"""Unit tests for report naming, storage and the archive catalog."""

from datetime import datetime

import pytest

from ledgers.catalog import ReportCatalog
from ledgers.errors import LedgerKind, ReportNotFound
from reports.storage import ReportStore, parse_report_bounds, report_file_stem


def test_report_file_stem_encodes_bounds() -> None:
    """Stems carry the kind and both bounds in compact ISO form."""
    stem = report_file_stem(
        LedgerKind.PRESENCE,
        datetime(2024, 1, 2, 3, 4, 5),
        datetime(2024, 2, 1, 23, 59, 0),
    )

    assert stem == "presence_20240102T030405_20240201T235900"


def test_parse_report_bounds() -> None:
    """Bounds are recovered from conforming names, including suffixed ones."""
    expected = (datetime(2024, 1, 2, 3, 4, 5), datetime(2024, 2, 1, 23, 59, 0))

    assert parse_report_bounds("access_20240102T030405_20240201T235900.html") == expected
    assert parse_report_bounds("access_20240102T030405_20240201T235900-3.html") == expected
    assert parse_report_bounds("notes.txt") is None
    assert parse_report_bounds("access_20241399T000000_20240201T235900.html") is None


def test_save_writes_content_and_suffixes_collisions(report_store, report_root) -> None:
    """Existing reports are never overwritten."""
    stem = "access_20240102T030405_20240201T235900"

    first = report_store.save(LedgerKind.ACCESS, stem, "html", b"one")
    second = report_store.save(LedgerKind.ACCESS, stem, ".html", b"two")
    third = report_store.save(LedgerKind.ACCESS, stem, "html", b"three")

    assert first == f"{stem}.html"
    assert second == f"{stem}-2.html"
    assert third == f"{stem}-3.html"
    directory = report_root / "access"
    assert (directory / first).read_bytes() == b"one"
    assert (directory / second).read_bytes() == b"two"
    assert sorted(path.name for path in directory.iterdir()) == sorted([first, second, third])


def test_route_prefix_is_normalized(tmp_path) -> None:
    """Routes always start with a single slash and carry the kind."""
    store = ReportStore(tmp_path, "reports/archive/")

    assert store.route(LedgerKind.ACCESS, "a.html") == "/reports/archive/access/a.html"
    assert store.directory(LedgerKind.PRESENCE) == tmp_path / "presence"


def test_catalog_missing_directory_is_empty(report_store) -> None:
    """A kind that was never archived lists nothing."""
    assert ReportCatalog(report_store).list(LedgerKind.PRESENCE) == []


def test_catalog_lists_sorted_and_skips_hidden(report_store, report_root) -> None:
    """Listings are ordered by file name and ignore dotfiles."""
    directory = report_root / "access"
    directory.mkdir()
    (directory / "access_20240301T000000_20240302T000000.html").write_text("b")
    (directory / "access_20240101T000000_20240102T000000.html").write_text("a")
    (directory / ".access_partial.html.tmp").write_text("x")
    (directory / "legacy.pdf").write_text("c")

    reports = ReportCatalog(report_store).list(LedgerKind.ACCESS)

    assert [report.file_name for report in reports] == [
        "access_20240101T000000_20240102T000000.html",
        "access_20240301T000000_20240302T000000.html",
        "legacy.pdf",
    ]
    assert reports[0].covers_from == datetime(2024, 1, 1)
    assert reports[0].covers_to == datetime(2024, 1, 2)
    assert reports[2].covers_from is None
    assert reports[2].route == "/reports/archive/access/legacy.pdf"


def test_catalog_resolve(report_store, report_root) -> None:
    """Resolve returns stored files and rejects anything outside the catalog."""
    directory = report_root / "presence"
    directory.mkdir()
    (directory / "report.html").write_text("ok")
    (report_root / "secret.txt").write_text("no")
    catalog = ReportCatalog(report_store)

    assert catalog.resolve(LedgerKind.PRESENCE, "report.html") == directory / "report.html"
    for name in ["../secret.txt", ".hidden", "", "missing.html", "sub/report.html"]:
        with pytest.raises(ReportNotFound):
            catalog.resolve(LedgerKind.PRESENCE, name)


def test_discard_removes_stored_report(report_store, report_root) -> None:
    """Discarding frees the name so the next save reuses it."""
    stem = "access_20240315T093000_20240315T093000"
    file_name = report_store.save(LedgerKind.ACCESS, stem, "html", b"one")

    report_store.discard(LedgerKind.ACCESS, file_name)
    report_store.discard(LedgerKind.ACCESS, file_name)

    assert list((report_root / "access").iterdir()) == []
    assert report_store.save(LedgerKind.ACCESS, stem, "html", b"two") == file_name
