"""
HubSpoke Server - Changeset Database Model

Changeset model for tracking batches of site changes applied together.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Text, JSON, Index
from sqlalchemy.orm import relationship

from models.database.base import Base


class Changeset(Base):
    """
    Changesets table - one row per batch of site changes
    Status moves PENDING -> COMMITTED or PENDING -> REVERTED, or starts COMMITTED
    A PENDING changeset keeps its actions in proposed_actions; site_changes
    are only written when the changeset is applied
    """
    __tablename__ = "changesets"

    changeset_id = Column(String(36), primary_key=True)
    user_id = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, default="PENDING")  # 'PENDING', 'COMMITTED' or 'REVERTED'
    created_at_utc = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at_utc = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    proposed_actions = Column(JSON, nullable=True)  # [{kind, site_id, payload}] while staged
    reverted_by = Column(String(36), nullable=True)  # Compensating changeset id once reverted

    # Ordered by sequence so insertion order is application order
    site_changes = relationship(
        "SiteChange",
        back_populates="changeset",
        order_by="SiteChange.sequence",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('idx_changesets_status', 'status'),
        Index('idx_changesets_created', 'created_at_utc'),
    )
