"""
HubSpoke Server - Site Endpoints

This module contains endpoints for listing, creating, updating,
associating and deleting sites. Every mutation is recorded as a
single-action changeset by the changeset engine.
"""

import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Query, status

from models.api import SiteCreateRequest, SiteUpdateRequest, SiteParentRequest
from routes.responses import ValueOrRaise


# Create logger
logger = logging.getLogger(__name__)

# Create router instance
router = APIRouter()


def _SiteResponse(site, children_index):
    return site.ToDict(spoke_count=len(children_index.get(site.site_id, [])))


def _SingleSiteResponse(site, registry):
    return site.ToDict(spoke_count=len(registry.Children(site.site_id)))


# ==================== Site Queries ====================

@router.get("/api/sites", tags=["Sites"])
async def list_sites(
    type: Optional[str] = Query(None, description="HUB, SPOKE, SUBHUB or all"),
    division: Optional[str] = None,
    search: Optional[str] = None
):
    """
    List sites sorted by name

    Args:
        type: Filter by site type
        division: Filter by division
        search: Case-insensitive match on name, url or division

    Returns:
        list: Sites with derived hub/spoke flags and spoke counts
    """
    from database import site_registry

    try:
        sites = site_registry.List(site_type=type, division=division, search=search)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid site type '{type}'. Must be one of: HUB, SPOKE, SUBHUB, all"
        )

    children_index = site_registry.ChildrenIndex()
    return [_SiteResponse(site, children_index) for site in sites]


@router.get("/api/sites/{site_id}", tags=["Sites"])
async def get_site(site_id: str):
    """
    Get one site with its direct children

    Raises:
        HTTPException: 404 if the site does not exist
    """
    from database import site_registry

    site = site_registry.Get(site_id)
    if site is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Site '{site_id}' not found"
        )

    children = site_registry.Children(site_id)
    response = site.ToDict(spoke_count=len(children))
    response["children"] = [child.ToDict() for child in children]
    return response


# ==================== Site Mutations ====================

@router.post("/api/sites", status_code=status.HTTP_201_CREATED, tags=["Sites"])
def create_site(request: SiteCreateRequest):
    """
    Create a site, optionally associated with a parent hub

    Returns:
        dict: The created site and the changeset that recorded it
    """
    from database import changeset_engine, site_registry

    payload = request.model_dump(exclude={"user_id"})
    changeset = ValueOrRaise(changeset_engine.CreateSite(request.user_id, payload))

    site = site_registry.Get(changeset["site_id"])
    return {"site": _SingleSiteResponse(site, site_registry), "changeset": changeset}


@router.patch("/api/sites/{site_id}", tags=["Sites"])
def update_site(site_id: str, request: SiteUpdateRequest):
    """
    Update descriptive fields of a site; omitted fields keep their value

    Returns:
        dict: The updated site and the changeset that recorded it
    """
    from database import changeset_engine, site_registry

    changes = request.model_dump(exclude_unset=True, exclude={"user_id"})
    changeset = ValueOrRaise(changeset_engine.UpdateSite(request.user_id, site_id, changes))

    site = site_registry.Get(site_id)
    return {"site": _SingleSiteResponse(site, site_registry), "changeset": changeset}


@router.put("/api/sites/{site_id}/parent", tags=["Sites"])
def set_site_parent(site_id: str, request: SiteParentRequest):
    """
    Associate a site with a hub, or remove its association when parent_hub_id is null

    Returns:
        dict: The site after the change and the changeset that recorded it
    """
    from database import changeset_engine, site_registry

    changeset = ValueOrRaise(changeset_engine.SetParent(request.user_id, site_id, request.parent_hub_id))

    site = site_registry.Get(site_id)
    return {"site": _SingleSiteResponse(site, site_registry), "changeset": changeset}


@router.delete("/api/sites/{site_id}", tags=["Sites"])
def delete_site(site_id: str, user_id: Optional[str] = None):
    """
    Delete a site; its children follow the configured delete policy

    Returns:
        dict: The changeset that recorded the deletion
    """
    from database import changeset_engine

    changeset = ValueOrRaise(changeset_engine.DeleteSite(user_id, site_id))
    logger.info(f"Site {site_id} deleted in changeset {changeset['changeset_id']}")
    return {"success": True, "changeset": changeset}
