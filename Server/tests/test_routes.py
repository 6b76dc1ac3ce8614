"""
Tests for the HubSpoke HTTP API

Runs the FastAPI application against a temporary database with TestClient.
"""

import pytest
from fastapi.testclient import TestClient


BASE = "https://contoso.sharepoint.com/sites"


@pytest.fixture
def client(tmp_path, monkeypatch):
    """TestClient with the lifespan handler run against a temporary database."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HUBSPOKE_DB_PATH", str(tmp_path / "api.db"))

    from server import app

    with TestClient(app) as test_client:
        yield test_client


def create_site(client, name, parent_hub_id=None, **fields):
    response = client.post("/api/sites", json={
        "name": name,
        "url": f"{BASE}/{name}",
        "parent_hub_id": parent_hub_id,
        **fields
    })
    assert response.status_code == 201, response.text
    return response.json()["site"]


def test_health(client):
    """Test the health endpoint"""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["site_count"] == 0


def test_lock_status_unlocked(client):
    """Test lock status when no changeset is being applied"""
    response = client.get("/status/lock")

    assert response.status_code == 200
    assert response.json()["locked"] is False


def test_site_lifecycle(client):
    """Test create, list, get, update, associate and delete"""
    hub = create_site(client, "DMV_HR", division="DMV")
    spoke = create_site(client, "DMV_HR_Payroll", parent_hub_id=hub["site_id"], division="DMV")

    assert hub["site_type"] == "HUB"
    assert spoke["site_type"] == "SPOKE"
    assert spoke["is_spoke"] is True

    listed = client.get("/api/sites", params={"type": "hub"}).json()
    assert [site["name"] for site in listed] == ["DMV_HR"]
    assert listed[0]["spoke_count"] == 1

    detail = client.get(f"/api/sites/{hub['site_id']}").json()
    assert [child["name"] for child in detail["children"]] == ["DMV_HR_Payroll"]

    updated = client.patch(f"/api/sites/{spoke['site_id']}", json={"team_name": "Payroll Team"})
    assert updated.status_code == 200
    assert updated.json()["site"]["team_name"] == "Payroll Team"
    assert updated.json()["site"]["parent_hub_id"] == hub["site_id"]

    detached = client.put(f"/api/sites/{spoke['site_id']}/parent", json={"parent_hub_id": None})
    assert detached.status_code == 200
    assert detached.json()["site"]["site_type"] == "HUB"

    deleted = client.delete(f"/api/sites/{hub['site_id']}")
    assert deleted.status_code == 200
    assert client.get(f"/api/sites/{hub['site_id']}").status_code == 404
    assert client.get(f"/api/sites/{spoke['site_id']}").status_code == 200


def test_site_errors(client):
    """Test error kinds are mapped to status codes"""
    hub_a = create_site(client, "HubA")
    hub_b = create_site(client, "HubB", parent_hub_id=hub_a["site_id"])

    cycle = client.put(f"/api/sites/{hub_a['site_id']}/parent", json={"parent_hub_id": hub_b["site_id"]})
    assert cycle.status_code == 409
    assert cycle.json()["detail"]["error"] == "CycleDetected"

    self_parent = client.put(f"/api/sites/{hub_a['site_id']}/parent", json={"parent_hub_id": hub_a["site_id"]})
    assert self_parent.status_code == 400
    assert self_parent.json()["detail"]["error"] == "SelfAssociation"

    duplicate = client.post("/api/sites", json={"name": "Copy", "url": f"{BASE}/HubA"})
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["error"] == "DuplicateUrl"

    missing = client.patch("/api/sites/missing", json={"name": "x"})
    assert missing.status_code == 404

    bad_type = client.get("/api/sites", params={"type": "branch"})
    assert bad_type.status_code == 422


def test_changeset_endpoints(client):
    """Test proposing, staging, committing, reverting and listing changesets"""
    response = client.post("/api/changesets", json={
        "user_id": "alice",
        "title": "Initial hierarchy",
        "actions": [
            {"kind": "CREATE", "target_site_id": "hub", "payload": {"name": "Sales", "url": f"{BASE}/Sales"}},
            {"kind": "CREATE", "target_site_id": "spoke", "payload": {"name": "Sales_EU", "url": f"{BASE}/Sales_EU"}},
            {"kind": "ASSOCIATE", "target_site_id": "spoke", "payload": {"parent_hub_id": "hub"}},
        ]
    })
    assert response.status_code == 201, response.text
    committed = response.json()
    assert committed["status"] == "COMMITTED"
    assert len(committed["site_changes"]) == 3

    associations = client.get(f"/api/changesets/{committed['changeset_id']}/associations").json()
    assert [(a["action"], a["site_name"], a["parent_name"]) for a in associations] == [
        ("ASSOCIATE", "Sales_EU", "Sales")
    ]

    staged = client.post("/api/changesets", json={
        "title": "Detach EU",
        "stage": True,
        "actions": [{"kind": "DISASSOCIATE", "target_site_id": "spoke"}]
    }).json()
    assert staged["status"] == "PENDING"
    assert client.get("/api/sites/spoke").json()["parent_hub_id"] == "hub"

    commit = client.post(f"/api/changesets/{staged['changeset_id']}/commit")
    assert commit.status_code == 200
    assert client.get("/api/sites/spoke").json()["parent_hub_id"] is None

    again = client.post(f"/api/changesets/{staged['changeset_id']}/commit")
    assert again.status_code == 400
    assert again.json()["detail"]["error"] == "InvalidState"

    revert = client.post(f"/api/changesets/{staged['changeset_id']}/revert", json={"user_id": "alice"})
    assert revert.status_code == 200
    assert revert.json()["title"] == "Revert: Detach EU"
    assert client.get("/api/sites/spoke").json()["parent_hub_id"] == "hub"

    revert_again = client.post(f"/api/changesets/{staged['changeset_id']}/revert", json={"user_id": "alice"})
    assert revert_again.status_code == 400
    assert revert_again.json()["detail"]["error"] == "InvalidState"

    listed = client.get("/api/changesets", params={"user_id": "alice"}).json()
    assert sorted(c["title"] for c in listed) == ["Initial hierarchy", "Revert: Detach EU"]
    assert client.get("/api/changesets/missing").status_code == 404


def test_changeset_failure_reports_action_index(client):
    """Test that a rejected changeset names the failing action"""
    response = client.post("/api/changesets", json={
        "title": "Broken",
        "actions": [
            {"kind": "CREATE", "payload": {"name": "Ops", "url": f"{BASE}/Ops"}},
            {"kind": "ASSOCIATE", "target_site_id": "ghost", "payload": {"parent_hub_id": "also-ghost"}},
        ]
    })

    assert response.status_code == 404
    assert response.json()["detail"]["action_index"] == 1
    assert client.get("/api/sites").json() == []

    malformed = client.post("/api/changesets", json={
        "title": "Malformed",
        "actions": [{"kind": "RENAME", "target_site_id": "x"}]
    })
    assert malformed.status_code == 422
    assert malformed.json()["detail"]["action_index"] == 0

    wrong_type = client.post("/api/changesets", json={
        "title": "Wrong type",
        "actions": [
            {"kind": "CREATE", "target_site_id": "ops", "payload": {"name": "Ops", "url": f"{BASE}/Ops"}},
            {"kind": "UPDATE", "target_site_id": "ops", "payload": {"name": 123}},
        ]
    })
    assert wrong_type.status_code == 422
    assert wrong_type.json()["detail"]["error"] == "ValidationError"
    assert wrong_type.json()["detail"]["action_index"] == 1
    assert client.get("/api/sites").json() == []


def test_csv_upload_and_export(client):
    """Test importing a CSV file and downloading the export"""
    text = (
        "Division,Hub Site Name,Hub URL,Spoke Site Name,Spoke URL,Last activity (UTC),Files,Storage used (%),Created by\n"
        f"DMV,DMV_HR,{BASE}/DMV_HR,DMV_HR_Payroll,{BASE}/DMV_HR_Payroll,01/15/2024 10:30:00,120,2.5,Jane Doe\n"
    )

    upload = client.post("/api/csv/upload", files={"file": ("sites.csv", text.encode("utf-8"), "text/csv")})
    assert upload.status_code == 201, upload.text
    assert upload.json()["sites_created"] == 2
    assert upload.json()["changeset"]["title"] == "CSV Import: sites.csv"

    export = client.get("/api/csv/export")
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert "IA_CARD_SORT_" in export.headers["content-disposition"]
    lines = export.text.splitlines()
    assert len(lines) == 2
    assert '"DMV_HR","' in lines[1]


def test_csv_upload_validation_errors(client):
    """Test that every row problem is returned and nothing is imported"""
    text = (
        "Hub Site Name,Hub URL,Spoke Site Name,Spoke URL\n"
        f"HR,{BASE}/HR,,{BASE}/Unnamed\n"
        f"IT,,IT_Helpdesk,{BASE}/IT_Helpdesk\n"
    )

    response = client.post("/api/csv/upload", files={"file": ("bad.csv", text.encode("utf-8"), "text/csv")})

    assert response.status_code == 422
    assert len(response.json()["detail"]["errors"]) == 2
    assert client.get("/api/sites").json() == []

    not_csv = client.post("/api/csv/upload", files={"file": ("sites.txt", text.encode("utf-8"), "text/plain")})
    assert not_csv.status_code == 400


def test_settings(client):
    """Test reading and updating settings"""
    settings = client.get("/api/settings").json()
    assert settings["lock_timeout_seconds"] == 5
    assert settings["delete_policy"] == "cascade"

    updated = client.put("/api/settings", json={"delete_policy": "orphan", "lock_timeout_seconds": 2})
    assert updated.status_code == 200
    assert updated.json()["delete_policy"] == "orphan"
    assert updated.json()["lock_timeout_seconds"] == 2

    invalid = client.put("/api/settings", json={"delete_policy": "shred"})
    assert invalid.status_code == 400


def test_orphan_policy_applies_to_delete(client):
    """Test that the delete policy setting is read on every delete"""
    hub = create_site(client, "Hub")
    spoke = create_site(client, "Spoke", parent_hub_id=hub["site_id"])
    client.put("/api/settings", json={"delete_policy": "orphan"})

    assert client.delete(f"/api/sites/{hub['site_id']}").status_code == 200

    remaining = client.get(f"/api/sites/{spoke['site_id']}").json()
    assert remaining["parent_hub_id"] is None
    assert remaining["site_type"] == "HUB"
