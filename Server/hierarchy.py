"""
HubSpoke Server - Hierarchy Validator

Pure functions that check the structural rules of the hub/spoke forest:
every site has at most one parent, no site is its own ancestor, and
the site type is derived from parentage only.

None of these functions modify the registry they are given.
"""

from typing import Dict, Optional

from exceptions import HubSpokeError, NotFoundError, SelfAssociationError, CycleDetectedError
from models.infrastructure import SiteRecord, SiteType
from site_registry import SiteRegistry


def WouldCreateCycle(registry: SiteRegistry, site_id: str, proposed_parent_id: str) -> bool:
    """
    Check whether making proposed_parent_id the parent of site_id creates a cycle

    Walks the ancestor chain starting at the proposed parent.

    Args:
        registry: Registry snapshot to check against
        site_id: Site being associated
        proposed_parent_id: Parent it would get

    Returns:
        True if site_id is the proposed parent or one of its ancestors
    """
    visited = set()
    current_id = proposed_parent_id
    while current_id is not None:
        if current_id == site_id:
            return True
        # Guard against a corrupt chain that already loops
        if current_id in visited:
            return True
        visited.add(current_id)
        current = registry.Get(current_id)
        if current is None:
            return False
        current_id = current.parent_hub_id
    return False


def ClassifyFlags(has_parent: bool, has_children: bool) -> SiteType:
    """Site type as a function of parentage alone"""
    if not has_parent:
        return SiteType.HUB
    if has_children:
        return SiteType.SUBHUB
    return SiteType.SPOKE


def Classify(site: SiteRecord, registry: SiteRegistry) -> SiteType:
    """
    Derive the type of a site

    HUB if it has no parent; otherwise SUBHUB if at least one site in the
    registry names it as parent, else SPOKE.
    """
    return ClassifyFlags(site.HasParent(), registry.HasChildren(site.site_id))


def ClassifyAll(registry: SiteRegistry) -> Dict[str, SiteType]:
    """
    Derive the type of every site in one pass

    Returns:
        dict: site_id -> SiteType
    """
    sites = registry.All()
    parents = {site.parent_hub_id for site in sites if site.parent_hub_id is not None}
    return {
        site.site_id: ClassifyFlags(site.HasParent(), site.site_id in parents)
        for site in sites
    }


def ValidateAssociate(registry: SiteRegistry, site_id: str, new_parent_id: str) -> Optional[HubSpokeError]:
    """
    Check an association request

    Args:
        registry: Registry snapshot to check against
        site_id: Site to associate
        new_parent_id: Parent to associate it with

    Returns:
        None if the association is allowed, otherwise the error describing why not
    """
    if site_id == new_parent_id:
        return SelfAssociationError(f"Site '{site_id}' cannot be associated with itself")

    site = registry.Get(site_id)
    if site is None:
        return NotFoundError(f"Site '{site_id}' not found")

    parent = registry.Get(new_parent_id)
    if parent is None:
        return NotFoundError(f"Parent site '{new_parent_id}' not found")

    if WouldCreateCycle(registry, site_id, new_parent_id):
        return CycleDetectedError(
            f"Associating '{site.name}' with '{parent.name}' would make '{site.name}' its own ancestor"
        )

    return None


def ValidateParentReference(registry: SiteRegistry, site_id: str, parent_id: Optional[str]) -> Optional[HubSpokeError]:
    """
    Check the parent given to a site at creation time

    Returns:
        None if parent_id is empty or refers to another existing site
    """
    if parent_id is None:
        return None
    if parent_id == site_id:
        return SelfAssociationError(f"Site '{site_id}' cannot be created as its own parent")
    if registry.Get(parent_id) is None:
        return NotFoundError(f"Parent site '{parent_id}' not found")
    return None
