"""
HubSpoke Server - Settings API Models

Pydantic models for settings management endpoints.
"""

from typing import Optional
from pydantic import BaseModel, Field


class SettingsUpdateRequest(BaseModel):
    lock_timeout_seconds: Optional[int] = Field(default=None, ge=0)
    delete_policy: Optional[str] = None  # 'cascade' or 'orphan'
    default_user_id: Optional[str] = None
