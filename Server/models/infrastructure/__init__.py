"""
HubSpoke Server - Infrastructure Models Package

This package contains dataclass models for the in-memory registry,
changeset actions, locks and engine results.
"""

from models.infrastructure.site_record import SiteRecord, SiteType, DESCRIPTIVE_FIELDS
from models.infrastructure.site_action import (
    ActionKind, SiteAction,
    CreateSite, UpdateSite, DeleteSite, AssociateSite, DisassociateSite,
    ActionToPayload, ActionFromPayload
)
from models.infrastructure.changeset_lock import ChangesetLock
from models.infrastructure.operation_result import OperationResult
from models.infrastructure.csv_site_row import CsvSiteRow

__all__ = [
    'SiteRecord',
    'SiteType',
    'DESCRIPTIVE_FIELDS',
    'ActionKind',
    'SiteAction',
    'CreateSite',
    'UpdateSite',
    'DeleteSite',
    'AssociateSite',
    'DisassociateSite',
    'ActionToPayload',
    'ActionFromPayload',
    'ChangesetLock',
    'OperationResult',
    'CsvSiteRow',
]
