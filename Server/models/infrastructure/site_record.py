"""
HubSpoke Server - Site Record Model

Immutable dataclass for sites held by the in-memory site registry.
Records are never modified in place; changes produce a new record via Replace().
"""

from dataclasses import dataclass, field, replace, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class SiteType(str, Enum):
    """Position of a site in the hub/spoke forest"""
    HUB = "HUB"
    SPOKE = "SPOKE"
    SUBHUB = "SUBHUB"


# Fields that carry no structural meaning and may be changed by an UPDATE action
DESCRIPTIVE_FIELDS = (
    "name",
    "url",
    "division",
    "last_activity",
    "file_count",
    "storage_used",
    "storage_percentage",
    "is_associated_with_team",
    "team_name",
    "created_by",
)


@dataclass(frozen=True)
class SiteRecord:
    """
    A SharePoint site in the hierarchy
    site_type is always derived from parentage by hierarchy.Classify
    """
    site_id: str
    name: str
    url: str
    site_type: SiteType = SiteType.HUB
    parent_hub_id: Optional[str] = None
    division: Optional[str] = None
    last_activity: Optional[datetime] = None
    file_count: int = 0
    storage_used: float = 0.0
    storage_percentage: float = 0.0
    is_associated_with_team: bool = False
    team_name: Optional[str] = None
    created_by: Optional[str] = None
    created_at_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at_utc: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def Replace(self, **changes) -> "SiteRecord":
        """Return a copy with the given fields changed and updated_at_utc refreshed"""
        changes.setdefault("updated_at_utc", datetime.now(timezone.utc))
        return replace(self, **changes)

    def HasParent(self) -> bool:
        return self.parent_hub_id is not None

    def ToSnapshot(self) -> Dict[str, Any]:
        """JSON-safe attribute snapshot used for changeset audit data"""
        snapshot = {}
        for key, value in asdict(self).items():
            if isinstance(value, datetime):
                snapshot[key] = value.isoformat()
            elif isinstance(value, Enum):
                snapshot[key] = value.value
            else:
                snapshot[key] = value
        return snapshot

    def ToDict(self, spoke_count: Optional[int] = None) -> Dict[str, Any]:
        """Response representation with the derived hub/spoke flags"""
        data = self.ToSnapshot()
        data["is_hub"] = self.site_type in (SiteType.HUB, SiteType.SUBHUB)
        data["is_spoke"] = self.site_type == SiteType.SPOKE
        data["is_subhub"] = self.site_type == SiteType.SUBHUB
        if spoke_count is not None:
            data["spoke_count"] = spoke_count
        return data
