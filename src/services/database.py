"""Database engine and session management."""

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from config import settings

logger = logging.getLogger(__name__)

_ALEMBIC_INI = Path(__file__).resolve().parents[2] / "alembic.ini"

_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def get_database_url() -> str:
    """Return the configured database URL."""
    return settings.database_url


def _ensure_sqlite_parent(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return
    database = parsed.database
    if not database or database == ":memory:":
        return
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)


def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        url = get_database_url()
        _ensure_sqlite_parent(url)
        _engine = create_engine(url, pool_pre_ping=True)
    return _engine


def get_sync_session() -> Session:
    """Open a new session bound to the process-wide engine."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine())
    return _session_factory()


def run_migrations_sync() -> None:
    """Upgrade the configured database to the latest schema revision."""
    url = get_database_url()
    _ensure_sqlite_parent(url)
    alembic_cfg = Config(str(_ALEMBIC_INI))
    alembic_cfg.set_main_option("script_location", str(_ALEMBIC_INI.parent / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", url)
    alembic_cfg.attributes["sqlalchemy.url"] = url
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations applied")


def check_connection() -> bool:
    """Check if database connection is working."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:
        logger.error("Database connection check failed: %s", exc)
        return False
