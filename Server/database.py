"""
HubSpoke Server - Database Module

This module exports the global instances shared across the application:
the database manager, the in-memory site registry and the changeset engine.
"""

from managers.database_manager import DatabaseManager
from site_registry import SiteRegistry
from changesets import ChangesetEngine

# Global instances
# Initialized in server.py lifespan handler (or by Initialize for the CLI)
db_manager: DatabaseManager = None
site_registry: SiteRegistry = None
changeset_engine: ChangesetEngine = None


def Initialize(db_path: str) -> ChangesetEngine:
    """
    Create the database (if needed), load the registry and build the engine

    Args:
        db_path: Path to SQLite database file

    Returns:
        ChangesetEngine: the engine, also stored in changeset_engine
    """
    global db_manager, site_registry, changeset_engine

    db_manager = DatabaseManager(db_path)
    db_manager.InitializeDatabase()

    session = db_manager.GetSession()
    try:
        site_registry = SiteRegistry(db_manager.LoadAllSites(session))
    finally:
        session.close()

    changeset_engine = ChangesetEngine(db_manager, site_registry)
    return changeset_engine
