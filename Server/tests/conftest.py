"""Pytest configuration and shared fixtures."""
import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from managers.database_manager import DatabaseManager
from site_registry import SiteRegistry
from changesets import ChangesetEngine
from models.infrastructure import CreateSite, SiteRecord, SiteType


@pytest.fixture
def db_manager(tmp_path):
    """Fresh SQLite database in a temporary directory."""
    manager = DatabaseManager(str(tmp_path / "hubspoke.db"))
    manager.InitializeDatabase()
    yield manager
    manager.engine.dispose()


@pytest.fixture
def registry(db_manager):
    """Site registry loaded from the (empty) database."""
    session = db_manager.GetSession()
    try:
        return SiteRegistry(db_manager.LoadAllSites(session))
    finally:
        session.close()


@pytest.fixture
def engine(db_manager, registry):
    """Changeset engine over the temporary database."""
    return ChangesetEngine(db_manager, registry)


@pytest.fixture
def reload_registry(db_manager):
    """Build a new registry from what is stored in the database."""
    def _reload():
        session = db_manager.GetSession()
        try:
            return SiteRegistry(db_manager.LoadAllSites(session))
        finally:
            session.close()
    return _reload


@pytest.fixture
def hub_with_spokes(engine):
    """DMV_HR hub with two spokes, committed through the engine."""
    actions = [
        CreateSite(site_id="hub-1", name="DMV_HR", url="https://contoso.sharepoint.com/sites/DMV_HR", division="DMV"),
        CreateSite(site_id="spoke-1", name="DMV_HR_Payroll", url="https://contoso.sharepoint.com/sites/DMV_HR_Payroll",
                   parent_hub_id="hub-1", division="DMV"),
        CreateSite(site_id="spoke-2", name="DMV_HR_Benefits", url="https://contoso.sharepoint.com/sites/DMV_HR_Benefits",
                   parent_hub_id="hub-1", division="DMV"),
    ]
    result = engine.ProposeChangeset("tester", "Seed", "Hub with two spokes", actions)
    assert result.success, result.message
    return engine.registry


def make_record(site_id, name=None, parent_hub_id=None, site_type=SiteType.HUB, division=None):
    """SiteRecord with a url derived from its name."""
    name = name or site_id
    return SiteRecord(
        site_id=site_id,
        name=name,
        url=f"https://contoso.sharepoint.com/sites/{name}",
        site_type=site_type,
        parent_hub_id=parent_hub_id,
        division=division,
    )
