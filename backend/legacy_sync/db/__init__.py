"""Database package with engine, session and migration management."""

from legacy_sync.db.migrate import downgrade_database, upgrade_database
from legacy_sync.db.session import build_engine, build_session_maker, create_schema, database_scope

__all__ = [
    "build_engine",
    "build_session_maker",
    "create_schema",
    "database_scope",
    "downgrade_database",
    "upgrade_database",
]
