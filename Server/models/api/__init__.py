"""
HubSpoke Server - API Models Package

This package contains Pydantic models for all API endpoints.
"""

from models.api.site import SiteCreateRequest, SiteUpdateRequest, SiteParentRequest
from models.api.changeset import SiteActionRequest, ChangesetCreateRequest, ChangesetRevertRequest
from models.api.settings import SettingsUpdateRequest

__all__ = [
    'SiteCreateRequest',
    'SiteUpdateRequest',
    'SiteParentRequest',
    'SiteActionRequest',
    'ChangesetCreateRequest',
    'ChangesetRevertRequest',
    'SettingsUpdateRequest',
]
