"""
HubSpoke Server - Changeset API Models

Pydantic models for changeset endpoints.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class SiteActionRequest(BaseModel):
    """One action of a changeset request"""
    kind: str  # 'CREATE', 'UPDATE', 'DELETE', 'ASSOCIATE' or 'DISASSOCIATE'
    target_site_id: Optional[str] = None  # Generated for CREATE when omitted
    payload: Dict[str, Any] = Field(default_factory=dict)


class ChangesetCreateRequest(BaseModel):
    """Request model for proposing a changeset"""
    user_id: Optional[str] = None
    title: str
    description: str = ""
    stage: bool = False  # Store as PENDING instead of applying immediately
    actions: List[SiteActionRequest]


class ChangesetRevertRequest(BaseModel):
    """Request model for reverting a changeset"""
    user_id: Optional[str] = None
