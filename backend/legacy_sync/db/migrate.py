"""Schema migrations for the legacy database, driven through Alembic."""

from pathlib import Path

from alembic import command
from alembic.config import Config

from legacy_sync.config import settings

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"


def alembic_config(database_url: str | None = None) -> Config:
    """Alembic config pointing at the bundled migrations, no alembic.ini needed."""
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    # ConfigParser interpolation treats % (URL-encoded passwords) as a reference
    url = database_url or settings.database_url
    config.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return config


def upgrade_database(database_url: str | None = None, revision: str = "head") -> None:
    """Upgrade the schema to revision.

    The migration environment runs its own event loop, so call this from
    synchronous code only (CLI commands, deploy scripts).
    """
    command.upgrade(alembic_config(database_url), revision)


def downgrade_database(database_url: str | None = None, revision: str = "base") -> None:
    command.downgrade(alembic_config(database_url), revision)
