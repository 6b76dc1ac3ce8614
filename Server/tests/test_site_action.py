"""
Tests for converting JSON payloads to site actions

Tests field type checks for CREATE and UPDATE payloads and the
payload shapes of the other action kinds.
"""

from datetime import datetime, timezone

import pytest

from exceptions import ErrorKind, HubSpokeValidationError
from models.infrastructure import (
    ActionKind, ActionFromPayload, ActionToPayload, CreateSite, UpdateSite, AssociateSite, DisassociateSite
)


URL = "https://contoso.sharepoint.com/sites/DMV_HR"


def test_create_payload_is_converted():
    """Test a CREATE payload with every field"""
    action = ActionFromPayload("create", "hub-1", {
        "name": " DMV_HR ",
        "url": URL,
        "division": "DMV",
        "last_activity": "2024-03-01T12:00:00Z",
        "file_count": "12",
        "storage_used": 3,
        "storage_percentage": "0.5",
        "is_associated_with_team": True,
        "team_name": "HR Team",
        "created_by": "alice",
        "parent_hub_id": "",
    })

    assert action == CreateSite(
        site_id="hub-1",
        name="DMV_HR",
        url=URL,
        division="DMV",
        last_activity=datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        file_count=12,
        storage_used=3.0,
        storage_percentage=0.5,
        is_associated_with_team=True,
        team_name="HR Team",
        created_by="alice",
    )


@pytest.mark.parametrize("payload", [
    {"name": 123, "url": URL},
    {"name": "DMV_HR", "url": ["not", "text"]},
    {"name": "DMV_HR", "url": URL, "file_count": "abc"},
    {"name": "DMV_HR", "url": URL, "storage_used": {}},
    {"name": "DMV_HR", "url": URL, "is_associated_with_team": "yes"},
    {"name": "DMV_HR", "url": URL, "last_activity": 20240301},
    {"name": "DMV_HR", "url": URL, "parent_hub_id": 7},
    {"name": "   ", "url": URL},
])
def test_malformed_create_payload_is_a_validation_error(payload):
    """Test that wrongly typed CREATE fields are reported as validation errors"""
    with pytest.raises(HubSpokeValidationError) as error:
        ActionFromPayload(ActionKind.CREATE, "hub-1", payload)

    assert error.value.kind == ErrorKind.VALIDATION_ERROR


def test_update_payload_is_converted():
    """Test UPDATE values are converted to the record types"""
    action = ActionFromPayload("UPDATE", "hub-1", {
        "file_count": 7,
        "last_activity": "2024-03-01T12:00:00+00:00",
        "division": None,
    })

    assert action == UpdateSite(site_id="hub-1", changes={
        "file_count": 7,
        "last_activity": datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        "division": None,
    })


@pytest.mark.parametrize("payload", [
    {"name": 123},
    {"name": ""},
    {"url": None},
    {"file_count": "abc"},
    {"file_count": 2.5},
    {"storage_percentage": "half"},
    {"is_associated_with_team": 1},
    {"team_name": 42},
    {"last_activity": "yesterday"},
])
def test_malformed_update_payload_is_a_validation_error(payload):
    """Test that wrongly typed UPDATE fields are rejected before they reach the registry"""
    with pytest.raises(HubSpokeValidationError):
        ActionFromPayload(ActionKind.UPDATE, "hub-1", payload)


def test_update_rejects_parentage_and_empty_payload():
    """Test UPDATE cannot touch parent_hub_id and must change something"""
    with pytest.raises(HubSpokeValidationError, match="parent_hub_id"):
        ActionFromPayload(ActionKind.UPDATE, "hub-1", {"parent_hub_id": "other"})

    with pytest.raises(HubSpokeValidationError, match="no fields"):
        ActionFromPayload(ActionKind.UPDATE, "hub-1", {})


def test_association_payloads():
    """Test ASSOCIATE needs a parent and DISASSOCIATE ignores its payload"""
    assert ActionFromPayload("ASSOCIATE", "spoke-1", {"parent_hub_id": "hub-1"}) == \
        AssociateSite(site_id="spoke-1", parent_hub_id="hub-1")
    assert ActionFromPayload("DISASSOCIATE", "spoke-1", None) == DisassociateSite(site_id="spoke-1")

    with pytest.raises(HubSpokeValidationError):
        ActionFromPayload("ASSOCIATE", "spoke-1", {})


def test_unknown_kind_and_missing_target():
    """Test action kind and target id are required"""
    with pytest.raises(HubSpokeValidationError, match="Unknown action kind"):
        ActionFromPayload("RENAME", "hub-1", {})

    with pytest.raises(HubSpokeValidationError, match="target site id"):
        ActionFromPayload("DELETE", None, None)


def test_stored_payload_reads_back_as_the_same_action():
    """Test staged actions survive the JSON form used for pending changesets"""
    action = UpdateSite(site_id="hub-1", changes={
        "last_activity": datetime(2024, 3, 1, tzinfo=timezone.utc),
        "storage_used": 1.5,
    })

    assert ActionFromPayload(action.kind.value, action.site_id, ActionToPayload(action)) == action
