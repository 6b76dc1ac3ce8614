"""
HubSpoke Server - Changeset Lock Model

Dataclass describing who currently holds the registry mutation lock.
"""

from datetime import datetime, timezone
from dataclasses import dataclass


@dataclass
class ChangesetLock:
    """
    Represents the exclusive lock held while a changeset is applied
    """
    user_id: str
    operation: str  # 'propose', 'stage', 'commit' or 'revert'
    title: str
    locked_at_utc: datetime

    def ElapsedSeconds(self) -> int:
        """Get elapsed time since lock was acquired"""
        now = datetime.now(timezone.utc)
        return int((now - self.locked_at_utc).total_seconds())
