"""
HubSpoke Server - Site API Models

Pydantic models for site endpoints.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class SiteCreateRequest(BaseModel):
    """Request model for creating a site"""
    name: str
    url: str
    parent_hub_id: Optional[str] = None  # Associate with this hub on creation
    division: Optional[str] = None
    last_activity: Optional[datetime] = None
    file_count: int = 0
    storage_used: float = 0.0
    storage_percentage: float = 0.0
    is_associated_with_team: bool = False
    team_name: Optional[str] = None
    created_by: Optional[str] = None
    user_id: Optional[str] = None  # Recorded on the changeset


class SiteUpdateRequest(BaseModel):
    """Request model for updating descriptive site fields; omitted fields are unchanged"""
    name: Optional[str] = None
    url: Optional[str] = None
    division: Optional[str] = None
    last_activity: Optional[datetime] = None
    file_count: Optional[int] = None
    storage_used: Optional[float] = None
    storage_percentage: Optional[float] = None
    is_associated_with_team: Optional[bool] = None
    team_name: Optional[str] = None
    created_by: Optional[str] = None
    user_id: Optional[str] = None


class SiteParentRequest(BaseModel):
    """Request model for setting (or clearing, with null) the parent of a site"""
    parent_hub_id: Optional[str] = None
    user_id: Optional[str] = None
