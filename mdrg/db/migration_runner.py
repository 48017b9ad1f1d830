"""
Migration Runner - Runs Alembic migrations at application startup.

Enabled with RUN_MIGRATIONS_ON_STARTUP; applies pending revisions only.
"""

import logging
from pathlib import Path

from sqlalchemy import create_engine

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from mdrg.config import settings

logger = logging.getLogger(__name__)

# Path to alembic.ini relative to project root
ALEMBIC_INI_PATH = Path(__file__).parent.parent.parent / "alembic.ini"

# Async driver -> sync driver used by Alembic's command API
_SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg2",
    "sqlite+aiosqlite": "sqlite",
}


def get_sync_database_url(url: str | None = None) -> str:
    """Get synchronous database URL for migrations.

    Alembic's command API uses synchronous connections, so async driver
    names are swapped for their sync counterparts.
    """
    url = url or settings.database_url
    scheme, sep, rest = url.partition("://")
    return f"{_SYNC_DRIVERS.get(scheme, scheme)}{sep}{rest}"


def _get_current_revision(engine) -> str | None:
    """Get the current database revision."""
    with engine.connect() as conn:
        context = MigrationContext.configure(conn)
        return context.get_current_revision()


def _get_head_revision(alembic_cfg: Config) -> str:
    """Get the head revision from migration scripts."""
    script = ScriptDirectory.from_config(alembic_cfg)
    return script.get_current_head()


def _alembic_config(sync_url: str) -> Config:
    alembic_cfg = Config(str(ALEMBIC_INI_PATH))
    alembic_cfg.set_main_option("script_location", str(ALEMBIC_INI_PATH.parent / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", sync_url.replace("%", "%%"))
    return alembic_cfg


def run_migrations() -> None:
    """
    Run pending Alembic migrations.

    Raises:
        RuntimeError: if the upgrade fails
    """
    if not ALEMBIC_INI_PATH.exists():
        logger.warning(f"Alembic config not found at {ALEMBIC_INI_PATH}, skipping migrations")
        return

    try:
        sync_url = get_sync_database_url()
        alembic_cfg = _alembic_config(sync_url)

        # Create sync engine to check current state
        engine = create_engine(sync_url)

        try:
            current = _get_current_revision(engine)
            head = _get_head_revision(alembic_cfg)

            if current == head:
                logger.info(f"Database schema is up to date (revision: {current})")
                return

            logger.info(f"Running migrations from {current} to {head}")
            command.upgrade(alembic_cfg, "head")

            new_current = _get_current_revision(engine)
            logger.info(f"Migrations complete. Database now at revision: {new_current}")

        finally:
            engine.dispose()

    except Exception as e:
        logger.error(f"Migration failed: {e}")
        raise RuntimeError(f"Database migration failed: {e}") from e
