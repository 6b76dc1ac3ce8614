"""
Tests for the in-memory site registry

Tests lookups, filtered listing, tree walks, mutations and snapshot isolation.
"""

from typing import Dict, List, get_type_hints

import pytest

from conftest import make_record
from exceptions import NotFoundError, DuplicateUrlError
from models.infrastructure import SiteRecord, SiteType
from site_registry import SiteRegistry


def build_registry():
    return SiteRegistry([
        make_record("hub", "Finance", division="FIN"),
        make_record("sub", "Finance_AP", parent_hub_id="hub", site_type=SiteType.SUBHUB, division="FIN"),
        make_record("leaf", "Finance_AP_Invoices", parent_hub_id="sub", site_type=SiteType.SPOKE, division="FIN"),
        make_record("other", "Legal", division="LEG"),
    ])


def test_get_and_find():
    """Test lookups by id, name and url"""
    registry = build_registry()

    assert registry.Get("hub").name == "Finance"
    assert registry.Get("missing") is None
    assert registry.Get(None) is None
    assert registry.FindByName("Legal").site_id == "other"
    assert registry.FindByName("Legal", division="FIN") is None
    assert registry.FindByUrl("https://contoso.sharepoint.com/sites/Finance_AP").site_id == "sub"
    assert "leaf" in registry
    assert len(registry) == 4


def test_list_filters():
    """Test listing by type, division and search text"""
    registry = build_registry()

    assert [site.name for site in registry.List()] == ["Finance", "Finance_AP", "Finance_AP_Invoices", "Legal"]
    assert [site.site_id for site in registry.List(site_type="hub")] == ["hub", "other"]
    assert [site.site_id for site in registry.List(site_type="SUBHUB")] == ["sub"]
    assert len(registry.List(site_type="all")) == 4
    assert [site.site_id for site in registry.List(division="LEG")] == ["other"]
    assert [site.site_id for site in registry.List(search="invoices")] == ["leaf"]


def test_list_rejects_unknown_type():
    """Test that an unknown type filter raises ValueError"""
    with pytest.raises(ValueError):
        build_registry().List(site_type="branch")


def test_children_and_descendants():
    """Test tree walks return parents before children"""
    registry = build_registry()

    assert [site.site_id for site in registry.Children("hub")] == ["sub"]
    assert registry.HasChildren("sub")
    assert not registry.HasChildren("leaf")
    assert [site.site_id for site in registry.Descendants("hub")] == ["sub", "leaf"]
    assert registry.Descendants("other") == []


def test_children_index():
    """Test the one-pass parent to children map"""
    registry = build_registry()
    registry.Insert(make_record("leaf2", "Finance_AP_Archive", parent_hub_id="sub", site_type=SiteType.SPOKE))

    index = registry.ChildrenIndex()

    assert {parent: [site.site_id for site in children] for parent, children in index.items()} == {
        "hub": ["sub"],
        "sub": ["leaf2", "leaf"],
    }
    assert [site.site_id for site in registry.Children("sub")] == ["leaf2", "leaf"]


def test_descendants_of_wide_tree():
    """Test descendants of a hub with many spokes and subhubs"""
    sites = [make_record("root", "Root")]
    for i in range(200):
        sites.append(make_record(f"mid-{i:03d}", f"Mid_{i:03d}", parent_hub_id="root"))
        sites.append(make_record(f"leaf-{i:03d}", f"Leaf_{i:03d}", parent_hub_id=f"mid-{i:03d}"))
    registry = SiteRegistry(sites)

    descendants = registry.Descendants("root")

    assert len(descendants) == 400
    assert [site.site_id for site in descendants[:200]] == [f"mid-{i:03d}" for i in range(200)]
    assert descendants[200].site_id == "leaf-000"


def test_method_annotations_resolve():
    """Test that annotations in the registry class refer to typing, not to methods"""
    assert get_type_hints(SiteRegistry.Children)["return"] == List[SiteRecord]
    assert get_type_hints(SiteRegistry.Descendants)["return"] == List[SiteRecord]
    assert get_type_hints(SiteRegistry.ChildrenIndex)["return"] == Dict[str, List[SiteRecord]]


def test_insert_rejects_duplicate_url():
    """Test that two sites cannot share a url"""
    registry = build_registry()
    duplicate = make_record("new", "Finance")

    with pytest.raises(DuplicateUrlError):
        registry.Insert(duplicate)
    assert "new" not in registry


def test_update_and_delete():
    """Test updates produce new records and deletes return the removed one"""
    registry = build_registry()
    before = registry.Get("other")

    updated = registry.Update("other", name="Legal Dept")
    assert updated.name == "Legal Dept"
    assert before.name == "Legal"
    assert registry.Get("other") is updated

    with pytest.raises(DuplicateUrlError):
        registry.Update("other", url="https://contoso.sharepoint.com/sites/Finance")
    with pytest.raises(NotFoundError):
        registry.Update("missing", name="x")

    removed = registry.Delete("other")
    assert removed.site_id == "other"
    assert "other" not in registry
    with pytest.raises(NotFoundError):
        registry.Delete("other")


def test_snapshot_is_isolated_until_replace():
    """Test that changes to a snapshot are invisible until swapped in"""
    registry = build_registry()
    snapshot = registry.Snapshot()

    snapshot.Delete("other")
    snapshot.Update("hub", name="Finance Hub")
    assert "other" in registry
    assert registry.Get("hub").name == "Finance"

    registry.Replace(snapshot)
    assert "other" not in registry
    assert registry.Get("hub").name == "Finance Hub"
