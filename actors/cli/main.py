"""doorlog operator CLI implemented with Typer."""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import typer

from config import settings
from ledgers.archival import ArchivalResult
from ledgers.errors import LedgerKind, LedgerNotFound, OpenEntryExists, StorageFailure
from ledgers.wiring import LedgerSet, build_ledgers
from log_config import configure_logging
from services.database import check_connection, run_migrations_sync

SUCCESS_EXIT_CODE = 0
DOMAIN_ERROR_EXIT_CODE = 3
STORAGE_ERROR_EXIT_CODE = 4
ARCHIVAL_ERROR_EXIT_CODE = 5


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options."""

    as_json: bool


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if dataclasses.is_dataclass(value):
        return _serialize(
            {field.name: getattr(value, field.name) for field in dataclasses.fields(value)}
        )
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="python"))
    return str(value)


def _emit_output(result: Any, as_json: bool) -> None:
    """Render command output in requested format."""

    data = _serialize(result)
    if as_json:
        typer.echo(json.dumps(data, sort_keys=True, separators=(",", ":")))
        return
    rendered = _render_human(data)
    if rendered is not None:
        typer.echo(rendered)
        return
    if data is None:
        typer.echo("ok")
        return
    typer.echo(str(data))


def _emit_error(exc: Exception, as_json: bool) -> None:
    """Render ledger errors to stderr."""

    if as_json:
        typer.echo(json.dumps({"error": str(exc)}), err=True)
        return
    typer.echo(f"error: {exc}", err=True)


def _render_human(data: Any) -> str | None:
    """Return human-oriented rendering for recognized response shapes."""
    if isinstance(data, dict):
        if _looks_like_archival_result(data):
            return _render_archival_result(data)
        if _looks_like_presence_tap(data):
            return f"{data['action']}: {_render_presence_row(data['record'])}"
        if _looks_like_presence_row(data):
            return _render_presence_row(data)
        if _looks_like_access_row(data):
            return _render_access_row(data)
    if isinstance(data, list):
        if len(data) == 0:
            return "No entries found."
        if all(isinstance(item, dict) and _looks_like_access_row(item) for item in data):
            return "\n".join(_render_access_row(item) for item in data)
        if all(isinstance(item, dict) and _looks_like_presence_row(item) for item in data):
            return "\n".join(_render_presence_row(item) for item in data)
        if all(isinstance(item, dict) and _looks_like_report(item) for item in data):
            return "\n".join(_render_report(item) for item in data)
    if isinstance(data, (dict, list)):
        return json.dumps(data, indent=2, sort_keys=True)
    return None


def _looks_like_access_row(value: dict[str, Any]) -> bool:
    """Return True for access ledger rows."""
    return "badge_id" in value and "granted" in value


def _looks_like_presence_row(value: dict[str, Any]) -> bool:
    """Return True for presence ledger rows."""
    return "entry_time" in value and "entry_valid" in value


def _looks_like_presence_tap(value: dict[str, Any]) -> bool:
    """Return True for presence tap results."""
    return "action" in value and isinstance(value.get("record"), dict)


def _looks_like_report(value: dict[str, Any]) -> bool:
    """Return True for catalog entries."""
    return "file_name" in value and "route" in value


def _looks_like_archival_result(value: dict[str, Any]) -> bool:
    """Return True for archival pipeline results."""
    return "status" in value and "archived_count" in value


def _render_access_row(row: dict[str, Any]) -> str:
    """Render one access row."""
    outcome = "granted" if row.get("granted") else "denied"
    return (
        f"{row.get('display_date')} {row.get('time')}  {row.get('person_name')}"
        f"  [{row.get('badge_id')}]  {outcome}"
    )


def _render_presence_row(row: dict[str, Any]) -> str:
    """Render one presence row."""
    entry_flag = "" if row.get("entry_valid") else " (invalid)"
    line = f"{row.get('display_date')}  {row.get('person_name')}  in {row.get('entry_time')}{entry_flag}"
    if row.get("exit_time") is None:
        return f"{line}  out -"
    exit_flag = "" if row.get("exit_valid") else " (invalid)"
    return f"{line}  out {row.get('exit_time')}{exit_flag}"


def _render_report(report: dict[str, Any]) -> str:
    """Render one catalog entry."""
    line = f"- {report.get('file_name')} -> {report.get('route')}"
    if report.get("covers_from") and report.get("covers_to"):
        line = f"{line} ({report['covers_from']} .. {report['covers_to']})"
    return line


def _render_archival_result(result: dict[str, Any]) -> str:
    """Render an archival pipeline result."""
    status = str(result.get("status"))
    report = result.get("report")
    if isinstance(report, dict):
        return f"{status}: {result.get('archived_count')} records -> {report.get('route')}"
    error = result.get("error")
    if error:
        return f"{status}: {error}"
    return status


def _run_command(cfg: CliConfig, invoke: Callable[[LedgerSet], Any]) -> None:
    """Execute one ledger call and map outputs/errors to process semantics."""
    try:
        result = invoke(build_ledgers())
    except (LedgerNotFound, OpenEntryExists) as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=DOMAIN_ERROR_EXIT_CODE) from exc
    except StorageFailure as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=STORAGE_ERROR_EXIT_CODE) from exc

    _emit_output(result, cfg.as_json)
    if isinstance(result, ArchivalResult) and result.error is not None:
        raise typer.Exit(code=ARCHIVAL_ERROR_EXIT_CODE)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _require_found(value: Any, message: str) -> Any:
    """Raise a not-found error for empty lookups."""
    if value is None:
        raise LedgerNotFound(message)
    return value


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


app = typer.Typer(no_args_is_help=True, help="doorlog command-line interface")
db_app = typer.Typer(help="Database commands")
access_app = typer.Typer(help="Access ledger commands")
presence_app = typer.Typer(help="Presence ledger commands")
reports_app = typer.Typer(help="Archived report commands")


@app.callback()
def main(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
    log_level: str | None = typer.Option(None, help="Override the configured log level"),
) -> None:
    """Store global options for all commands."""

    configure_logging(level=log_level or settings.log_level, json_output=settings.log_json)
    ctx.obj = CliConfig(as_json=as_json)


@db_app.command("upgrade")
def db_upgrade(ctx: typer.Context) -> None:
    """Apply database migrations."""
    cfg = _require_config(ctx)
    try:
        run_migrations_sync()
    except Exception as exc:
        _emit_error(exc, cfg.as_json)
        raise typer.Exit(code=STORAGE_ERROR_EXIT_CODE) from exc
    _emit_output(None, cfg.as_json)


@db_app.command("check")
def db_check(ctx: typer.Context) -> None:
    """Verify the configured database is reachable."""
    cfg = _require_config(ctx)
    if not check_connection():
        _emit_error(RuntimeError("database connection check failed"), cfg.as_json)
        raise typer.Exit(code=STORAGE_ERROR_EXIT_CODE)
    _emit_output(None, cfg.as_json)


@access_app.command("tap")
def access_tap(
    ctx: typer.Context,
    person_name: str = typer.Argument(..., help="Badge holder name"),
    badge_id: str = typer.Argument(..., help="Badge identifier"),
    granted: bool = typer.Option(True, "--granted/--denied", help="Tap outcome"),
) -> None:
    """Record an access tap."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda ledgers: ledgers.taps.access_tap(person_name, badge_id, granted))


@access_app.command("list")
def access_list(ctx: typer.Context) -> None:
    """List access records, newest first."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda ledgers: ledgers.access.list_all())


@access_app.command("latest")
def access_latest(ctx: typer.Context) -> None:
    """Show the most recent access record."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda ledgers: _require_found(ledgers.access.most_recent(), "access ledger is empty"),
    )


@access_app.command("report")
def access_report(ctx: typer.Context) -> None:
    """Archive and purge the access ledger now."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda ledgers: ledgers.access.generate_report())


@presence_app.command("tap")
def presence_tap(
    ctx: typer.Context,
    person_name: str = typer.Argument(..., help="Badge holder name"),
    valid: bool = typer.Option(True, "--valid/--invalid", help="Within permitted hours"),
) -> None:
    """Record a presence tap as entry or exit."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda ledgers: ledgers.taps.presence_tap(person_name, valid))


@presence_app.command("list")
def presence_list(ctx: typer.Context) -> None:
    """List presence intervals, newest first."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda ledgers: ledgers.presence.list_all())


@presence_app.command("today")
def presence_today(
    ctx: typer.Context,
    person_name: str = typer.Argument(..., help="Badge holder name"),
) -> None:
    """Show today's interval for a person."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda ledgers: _require_found(
            ledgers.presence.find_today(person_name),
            f"no presence record today for {person_name}",
        ),
    )


@presence_app.command("report")
def presence_report(ctx: typer.Context) -> None:
    """Archive and purge the presence ledger now."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda ledgers: ledgers.presence.generate_report())


@reports_app.command("list")
def reports_list(
    ctx: typer.Context,
    kind: LedgerKind = typer.Argument(..., help="Ledger kind", case_sensitive=False),
) -> None:
    """List archived reports for a ledger."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda ledgers: ledgers.catalog.list(kind))


@reports_app.command("path")
def reports_path(
    ctx: typer.Context,
    kind: LedgerKind = typer.Argument(..., help="Ledger kind", case_sensitive=False),
    file_name: str = typer.Argument(..., help="Report file name"),
) -> None:
    """Print the stored location of an archived report."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda ledgers: ledgers.catalog.resolve(kind, file_name))


app.add_typer(db_app, name="db")
app.add_typer(access_app, name="access")
app.add_typer(presence_app, name="presence")
app.add_typer(reports_app, name="reports")


if __name__ == "__main__":
    app()
