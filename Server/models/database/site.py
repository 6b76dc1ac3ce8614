"""
HubSpoke Server - Site Database Model

Site model for SharePoint hub, sub-hub and spoke sites.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, Boolean, Float, ForeignKey, Index

from models.database.base import Base


class Site(Base):
    """
    Sites table - one row per SharePoint site
    site_type is derived from parentage and rewritten on every committed changeset
    """
    __tablename__ = "sites"

    site_id = Column(String(36), primary_key=True)
    name = Column(String, nullable=False)
    url = Column(String, nullable=False, unique=True)
    site_type = Column(String, nullable=False, default="HUB")  # 'HUB', 'SPOKE' or 'SUBHUB'
    parent_hub_id = Column(String(36), ForeignKey("sites.site_id", ondelete="SET NULL"), nullable=True)
    division = Column(String, nullable=True)
    last_activity = Column(DateTime, nullable=True)
    file_count = Column(Integer, nullable=False, default=0)
    storage_used = Column(Float, nullable=False, default=0.0)
    storage_percentage = Column(Float, nullable=False, default=0.0)
    is_associated_with_team = Column(Boolean, nullable=False, default=False)
    team_name = Column(String, nullable=True)
    created_by = Column(String, nullable=True)
    created_at_utc = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at_utc = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        # Index for loading children of a hub
        Index('idx_sites_parent', 'parent_hub_id'),
        # Index for division filtering
        Index('idx_sites_division', 'division'),
    )
