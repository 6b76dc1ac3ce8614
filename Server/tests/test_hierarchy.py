"""
Tests for the hierarchy validator

Tests cycle detection, association checks and site classification.
"""

from conftest import make_record
from exceptions import ErrorKind
from hierarchy import WouldCreateCycle, Classify, ClassifyAll, ValidateAssociate, ValidateParentReference
from models.infrastructure import SiteType
from site_registry import SiteRegistry


def chain_registry():
    """A -> B -> C chain plus an unrelated root D"""
    return SiteRegistry([
        make_record("A"),
        make_record("B", parent_hub_id="A"),
        make_record("C", parent_hub_id="B"),
        make_record("D"),
    ])


def test_would_create_cycle():
    """Test that a site cannot become a descendant of itself"""
    registry = chain_registry()

    assert WouldCreateCycle(registry, "A", "C")
    assert WouldCreateCycle(registry, "A", "A")
    assert WouldCreateCycle(registry, "B", "C")
    assert not WouldCreateCycle(registry, "D", "C")
    assert not WouldCreateCycle(registry, "C", "D")


def test_classify():
    """Test type derivation from parentage"""
    registry = chain_registry()

    assert Classify(registry.Get("A"), registry) == SiteType.HUB
    assert Classify(registry.Get("B"), registry) == SiteType.SUBHUB
    assert Classify(registry.Get("C"), registry) == SiteType.SPOKE
    assert Classify(registry.Get("D"), registry) == SiteType.HUB
    assert ClassifyAll(registry) == {
        "A": SiteType.HUB,
        "B": SiteType.SUBHUB,
        "C": SiteType.SPOKE,
        "D": SiteType.HUB,
    }


def test_validate_associate_errors():
    """Test each association error kind"""
    registry = chain_registry()

    assert ValidateAssociate(registry, "D", "D").kind == ErrorKind.SELF_ASSOCIATION
    assert ValidateAssociate(registry, "missing", "A").kind == ErrorKind.NOT_FOUND
    assert ValidateAssociate(registry, "D", "missing").kind == ErrorKind.NOT_FOUND
    assert ValidateAssociate(registry, "A", "C").kind == ErrorKind.CYCLE_DETECTED
    assert ValidateAssociate(registry, "D", "C") is None


def test_validate_associate_does_not_modify_registry():
    """Test that validation leaves the registry untouched"""
    registry = chain_registry()
    before = {site.site_id: site for site in registry.All()}

    ValidateAssociate(registry, "A", "C")
    ValidateAssociate(registry, "D", "C")

    assert {site.site_id: site for site in registry.All()} == before


def test_validate_parent_reference():
    """Test parent checks used when creating a site"""
    registry = chain_registry()

    assert ValidateParentReference(registry, "new", None) is None
    assert ValidateParentReference(registry, "new", "A") is None
    assert ValidateParentReference(registry, "new", "new").kind == ErrorKind.SELF_ASSOCIATION
    assert ValidateParentReference(registry, "new", "missing").kind == ErrorKind.NOT_FOUND
