"""
HubSpoke Server - Database Manager

This module manages database connection, initialization, and the
persistence operations used by the site registry and changeset engine.
All write methods take the caller's session so several writes can be
committed or rolled back together.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import create_engine, or_
from sqlalchemy.orm import sessionmaker, selectinload

from models.database import Base, Site, Changeset, SiteChange, Setting
from models.infrastructure import SiteRecord, SiteType

logger = logging.getLogger(__name__)


# Default runtime settings, stored as strings like every other setting
DEFAULT_SETTINGS = {
    "lock_timeout_seconds": "5",
    "delete_policy": "cascade",  # 'cascade' or 'orphan'
    "default_user_id": "system",
}


def _AsUtc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite returns naive datetimes; treat them as UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DatabaseManager:
    """
    Manages database connection, initialization, and operations
    """

    def __init__(self, db_path: str = "database/hubspoke.db"):
        """
        Initialize database manager

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

        # Ensure database directory exists
        db_dir = Path(db_path).parent
        if db_dir and str(db_dir) != '.':
            db_dir.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(
            f"sqlite:///{db_path}",
            echo=False,
            connect_args={"check_same_thread": False}  # Sessions are used from the request thread pool
        )
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)

    def InitializeDatabase(self) -> None:
        """
        Initialize the database with all tables and default settings
        """
        # Create all tables
        Base.metadata.create_all(bind=self.engine)

        session = self.SessionLocal()
        try:
            self.PopulateDefaultSettings(session)
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def PopulateDefaultSettings(self, session):
        """
        Populate default settings
        Only adds settings that don't already exist

        Args:
            session: SQLAlchemy session
        """
        for key, value in DEFAULT_SETTINGS.items():
            existing = session.query(Setting).filter(Setting.key == key).first()
            if not existing:
                session.add(Setting(key=key, value=value))
                logger.info(f"Added default setting: {key} = {value}")

    def GetSession(self):
        """
        Get a new database session

        Returns:
            Session: SQLAlchemy session
        """
        return self.SessionLocal()

    # ==================== Settings ====================

    def GetSettings(self, session) -> Dict[str, str]:
        """
        Get all settings, falling back to defaults for missing keys

        Returns:
            dict: setting key -> string value
        """
        settings = dict(DEFAULT_SETTINGS)
        for setting in session.query(Setting).all():
            settings[setting.key] = setting.value
        return settings

    def GetSetting(self, session, key: str) -> Optional[str]:
        setting = session.query(Setting).filter(Setting.key == key).first()
        if setting:
            return setting.value
        return DEFAULT_SETTINGS.get(key)

    def SetSetting(self, session, key: str, value: str) -> None:
        setting = session.query(Setting).filter(Setting.key == key).first()
        if setting:
            setting.value = value
        else:
            session.add(Setting(key=key, value=value))

    # ==================== Sites ====================

    @staticmethod
    def SiteToRecord(site: Site) -> SiteRecord:
        """Convert a Site row to an immutable SiteRecord"""
        return SiteRecord(
            site_id=site.site_id,
            name=site.name,
            url=site.url,
            site_type=SiteType(site.site_type),
            parent_hub_id=site.parent_hub_id,
            division=site.division,
            last_activity=_AsUtc(site.last_activity),
            file_count=site.file_count or 0,
            storage_used=site.storage_used or 0.0,
            storage_percentage=site.storage_percentage or 0.0,
            is_associated_with_team=bool(site.is_associated_with_team),
            team_name=site.team_name,
            created_by=site.created_by,
            created_at_utc=_AsUtc(site.created_at_utc),
            updated_at_utc=_AsUtc(site.updated_at_utc),
        )

    def LoadAllSites(self, session) -> List[SiteRecord]:
        """
        Load every site

        Args:
            session: SQLAlchemy session

        Returns:
            list: SiteRecord for every stored site
        """
        return [self.SiteToRecord(site) for site in session.query(Site).all()]

    def SaveSite(self, session, record: SiteRecord) -> None:
        """
        Insert or update a site from its record

        Args:
            session: SQLAlchemy session
            record: Site state to store
        """
        session.merge(Site(
            site_id=record.site_id,
            name=record.name,
            url=record.url,
            site_type=record.site_type.value,
            parent_hub_id=record.parent_hub_id,
            division=record.division,
            last_activity=record.last_activity,
            file_count=record.file_count,
            storage_used=record.storage_used,
            storage_percentage=record.storage_percentage,
            is_associated_with_team=record.is_associated_with_team,
            team_name=record.team_name,
            created_by=record.created_by,
            created_at_utc=record.created_at_utc,
            updated_at_utc=record.updated_at_utc,
        ))

    def DeleteSite(self, session, site_id: str) -> None:
        """
        Delete a site row if present

        Args:
            session: SQLAlchemy session
            site_id: Site to delete
        """
        session.query(Site).filter(Site.site_id == site_id).delete(synchronize_session=False)

    # ==================== Changesets ====================

    def SaveChangeset(self, session, changeset: Changeset) -> Changeset:
        """
        Insert or update a changeset row (without touching its site changes)

        Args:
            session: SQLAlchemy session
            changeset: Changeset to store

        Returns:
            Changeset: the stored instance
        """
        changeset.updated_at_utc = datetime.now(timezone.utc)
        session.add(changeset)
        return changeset

    def AppendSiteChange(self, session, site_change: SiteChange) -> None:
        """
        Append an audit entry; entries are never edited afterwards

        Args:
            session: SQLAlchemy session
            site_change: SiteChange row to add
        """
        session.add(site_change)

    def GetChangeset(self, session, changeset_id: str) -> Optional[Changeset]:
        """
        Get a changeset with its ordered site changes

        Returns:
            Changeset or None if it does not exist
        """
        return (
            session.query(Changeset)
            .options(selectinload(Changeset.site_changes))
            .filter(Changeset.changeset_id == changeset_id)
            .first()
        )

    def ListChangesets(self, session, status: Optional[str] = None, user_id: Optional[str] = None,
                       search: Optional[str] = None) -> List[Changeset]:
        """
        List changesets newest first

        Args:
            session: SQLAlchemy session
            status: Filter by status ('all' or None for every status)
            user_id: Filter by user
            search: Case-insensitive match on title or description

        Returns:
            list: Changeset rows with site changes loaded
        """
        query = session.query(Changeset).options(selectinload(Changeset.site_changes))

        if status and status.lower() != "all":
            query = query.filter(Changeset.status == status.upper())

        if user_id:
            query = query.filter(Changeset.user_id == user_id)

        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Changeset.title.ilike(pattern), Changeset.description.ilike(pattern)))

        return query.order_by(Changeset.created_at_utc.desc()).all()
