"""
HubSpoke Server - Site Registry

In-memory table of sites, loaded from the database at startup.

Readers always see a complete state: the registry holds an immutable
mapping that is swapped in one assignment when a changeset commits.
The changeset engine works on a Snapshot() copy and only calls Replace()
after the database transaction succeeded.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Dict, Iterable, List, Optional

from exceptions import NotFoundError, DuplicateUrlError
from models.infrastructure import SiteRecord, SiteType

logger = logging.getLogger(__name__)


class SiteRegistry:
    """
    Lookup, listing and mutation of SiteRecords
    """

    def __init__(self, sites: Iterable[SiteRecord] = ()):
        self._sites: Dict[str, SiteRecord] = {site.site_id: site for site in sites}
        self._swap_lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sites)

    def __contains__(self, site_id: str) -> bool:
        return site_id in self._sites

    # ==================== Reads ====================

    def Get(self, site_id: Optional[str]) -> Optional[SiteRecord]:
        """Get a site by id, or None if it does not exist"""
        if site_id is None:
            return None
        return self._sites.get(site_id)

    def FindByName(self, name: str, division: Optional[str] = None) -> Optional[SiteRecord]:
        """
        Find the first site (by name order) with the given name

        Args:
            name: Exact site name
            division: Restrict the match to this division

        Returns:
            SiteRecord or None
        """
        for site in self.All():
            if site.name == name and (division is None or site.division == division):
                return site
        return None

    def FindByUrl(self, url: str) -> Optional[SiteRecord]:
        """Find the site registered under a url, or None"""
        for site in self._sites.values():
            if site.url == url:
                return site
        return None

    def All(self) -> List[SiteRecord]:
        """All sites sorted by name"""
        return sorted(self._sites.values(), key=lambda site: (site.name, site.site_id))

    def List(self, site_type: Optional[str] = None, division: Optional[str] = None,
             search: Optional[str] = None) -> List[SiteRecord]:
        """
        List sites sorted by name ascending

        Args:
            site_type: 'HUB', 'SPOKE', 'SUBHUB' (any case); 'all' or None for every type
            division: Exact division match
            search: Case-insensitive substring match on name, url or division

        Returns:
            list: Matching SiteRecords
        """
        sites = self.All()

        if site_type and site_type.lower() != "all":
            wanted = SiteType(site_type.upper())
            sites = [site for site in sites if site.site_type == wanted]

        if division:
            sites = [site for site in sites if site.division == division]

        if search:
            needle = search.lower()
            sites = [
                site for site in sites
                if needle in site.name.lower()
                or needle in site.url.lower()
                or needle in (site.division or "").lower()
            ]

        return sites

    def Children(self, site_id: str) -> List[SiteRecord]:
        """Direct children of a site sorted by name"""
        children = [site for site in self._sites.values() if site.parent_hub_id == site_id]
        return sorted(children, key=lambda site: (site.name, site.site_id))

    def ChildrenIndex(self) -> Dict[str, List[SiteRecord]]:
        """
        Map every parent id to its direct children sorted by name

        Built in one pass over the registry, so callers that need the
        children of many sites (listings, subtree walks) ask for it once.
        """
        index: Dict[str, List[SiteRecord]] = {}
        for site in self.All():
            if site.parent_hub_id is not None:
                index.setdefault(site.parent_hub_id, []).append(site)
        return index

    def HasChildren(self, site_id: str) -> bool:
        return any(site.parent_hub_id == site_id for site in self._sites.values())

    def Descendants(self, site_id: str) -> List[SiteRecord]:
        """All sites below site_id, parents before their children"""
        index = self.ChildrenIndex()
        descendants = []
        queue = deque([site_id])
        seen = {site_id}
        while queue:
            current = queue.popleft()
            for child in index.get(current, []):
                if child.site_id not in seen:
                    seen.add(child.site_id)
                    descendants.append(child)
                    queue.append(child.site_id)
        return descendants

    # ==================== Writes ====================

    def Insert(self, site: SiteRecord) -> None:
        """
        Add a new site

        Raises:
            DuplicateUrlError: url (or id) already registered
        """
        existing = self.FindByUrl(site.url)
        if existing is not None:
            raise DuplicateUrlError(f"URL '{site.url}' is already used by site '{existing.name}'")
        if site.site_id in self._sites:
            raise DuplicateUrlError(f"Site id '{site.site_id}' already exists")
        self._sites[site.site_id] = site

    def Update(self, site_id: str, **changes) -> SiteRecord:
        """
        Replace fields of an existing site

        Raises:
            NotFoundError: site does not exist
            DuplicateUrlError: new url belongs to another site

        Returns:
            SiteRecord: the new record
        """
        current = self._sites.get(site_id)
        if current is None:
            raise NotFoundError(f"Site '{site_id}' not found")

        if "url" in changes and changes["url"] != current.url:
            existing = self.FindByUrl(changes["url"])
            if existing is not None and existing.site_id != site_id:
                raise DuplicateUrlError(f"URL '{changes['url']}' is already used by site '{existing.name}'")

        updated = current.Replace(**changes)
        self._sites[site_id] = updated
        return updated

    def Delete(self, site_id: str) -> SiteRecord:
        """
        Remove a single site; children are left to the caller's delete policy

        Raises:
            NotFoundError: site does not exist

        Returns:
            SiteRecord: the removed record
        """
        removed = self._sites.pop(site_id, None)
        if removed is None:
            raise NotFoundError(f"Site '{site_id}' not found")
        return removed

    # ==================== Snapshots ====================

    def Snapshot(self) -> "SiteRegistry":
        """Independent copy for validation and staged application"""
        return SiteRegistry(self._sites.values())

    def Replace(self, other: "SiteRegistry") -> None:
        """Swap in the state of another registry in a single assignment"""
        with self._swap_lock:
            self._sites = dict(other._sites)
        logger.debug(f"Registry replaced ({len(self._sites)} sites)")
