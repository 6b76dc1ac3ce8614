"""
HubSpoke Server - Changeset Endpoints

This module contains endpoints for proposing, committing, reverting and
inspecting changesets.
"""

import logging
import uuid
from typing import Optional
from fastapi import APIRouter, status

from exceptions import HubSpokeError
from models.api import ChangesetCreateRequest, ChangesetRevertRequest
from models.infrastructure import ActionKind, ActionFromPayload, OperationResult
from routes.responses import ValueOrRaise


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


# ==================== Changeset Queries ====================

@router.get("/api/changesets", tags=["Changesets"])
async def list_changesets(
    status: Optional[str] = None,
    user_id: Optional[str] = None,
    search: Optional[str] = None
):
    """
    List changesets newest first

    Args:
        status: 'PENDING', 'COMMITTED', 'REVERTED' or 'all'
        user_id: Filter by user
        search: Case-insensitive match on title or description
    """
    from database import changeset_engine

    return ValueOrRaise(changeset_engine.ListChangesets(status=status, user_id=user_id, search=search))


@router.get("/api/changesets/{changeset_id}", tags=["Changesets"])
async def get_changeset(changeset_id: str):
    """Get a changeset with its ordered site changes"""
    from database import changeset_engine

    return ValueOrRaise(changeset_engine.GetChangeset(changeset_id))


@router.get("/api/changesets/{changeset_id}/associations", tags=["Changesets"])
async def get_changeset_associations(changeset_id: str):
    """
    Get the association changes of a committed changeset
    Used to generate hub association scripts for SharePoint
    """
    from database import changeset_engine

    return ValueOrRaise(changeset_engine.GetAssociationActions(changeset_id))


# ==================== Changeset Control ====================

@router.post("/api/changesets", status_code=status.HTTP_201_CREATED, tags=["Changesets"])
def create_changeset(request: ChangesetCreateRequest):
    """
    Propose a changeset

    The actions are applied in order, all or nothing. With stage=true the
    changeset is validated and stored as PENDING without changing any site.

    Raises:
        HTTPException: error kind, message and index of the failing action
    """
    from database import changeset_engine

    actions = []
    for index, action_request in enumerate(request.actions):
        site_id = action_request.target_site_id
        if not site_id and action_request.kind.upper() == ActionKind.CREATE.value:
            site_id = str(uuid.uuid4())
        try:
            actions.append(ActionFromPayload(action_request.kind, site_id, action_request.payload))
        except HubSpokeError as e:
            ValueOrRaise(OperationResult.Fail(e, action_index=index))

    changeset = ValueOrRaise(changeset_engine.ProposeChangeset(
        request.user_id, request.title, request.description, actions, stage=request.stage
    ))
    logger.info(f"Changeset {changeset['changeset_id']} created with status {changeset['status']}")
    return changeset


@router.post("/api/changesets/{changeset_id}/commit", tags=["Changesets"])
def commit_changeset(changeset_id: str):
    """
    Commit a PENDING changeset after re-validating it against the current sites
    """
    from database import changeset_engine

    return ValueOrRaise(changeset_engine.Commit(changeset_id))


@router.post("/api/changesets/{changeset_id}/revert", tags=["Changesets"])
def revert_changeset(changeset_id: str, request: Optional[ChangesetRevertRequest] = None):
    """
    Revert a changeset

    A PENDING changeset is discarded (marked REVERTED). A COMMITTED changeset
    is undone by a new compensating changeset, which is returned.
    """
    from database import changeset_engine

    user_id = request.user_id if request else None
    return ValueOrRaise(changeset_engine.RevertChangeset(changeset_id, user_id))
