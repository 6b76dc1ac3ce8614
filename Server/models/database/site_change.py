"""
HubSpoke Server - Site Change Database Model

SiteChange model for the append-only audit entries of a changeset.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, Index
from sqlalchemy.orm import relationship

from models.database.base import Base


class SiteChange(Base):
    """
    Site changes table - one row per action in a changeset
    site_id is a plain reference: the site may have been deleted since
    """
    __tablename__ = "site_changes"

    change_id = Column(Integer, primary_key=True, autoincrement=True)
    changeset_id = Column(String(36), ForeignKey("changesets.changeset_id", ondelete="CASCADE"), nullable=False)
    sequence = Column(Integer, nullable=False)  # Position within the changeset
    site_id = Column(String(36), nullable=False)
    action = Column(String, nullable=False)  # 'CREATE', 'UPDATE', 'DELETE', 'ASSOCIATE' or 'DISASSOCIATE'
    old_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=True)
    created_at_utc = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    changeset = relationship("Changeset", back_populates="site_changes")

    __table_args__ = (
        Index('idx_site_changes_changeset', 'changeset_id', 'sequence'),
        Index('idx_site_changes_site', 'site_id'),
        {"sqlite_autoincrement": True}
    )
