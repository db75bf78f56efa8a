"""Integration tests for the activity API endpoints."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[4]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from teamgit.config import Settings


def _payload(**overrides) -> dict:
    payload = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "userName": "Alice",
        "userEmail": "alice@x.com",
        "repoName": "r1",
        "branch": "main",
        "remoteUrl": "https://github.com/acme/r1.git",
        "modifiedFiles": [
            {"filePath": "src/app.py", "status": "Modified", "isStaged": False},
            {"filePath": "README.md", "status": "Untracked", "isStaged": False},
        ],
        "machineName": "M1",
        "tenant": "acme",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        storage_type="json",
        data_dir=tmp_path / "data",
        retention_sweep_enabled=False,
    )


@pytest.fixture()
def client(settings: Settings):
    """Return a test client bound to a clean application instance."""

    from main import create_app

    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def test_record_and_list_users(client: TestClient) -> None:
    response = client.post("/api/git-activity", json=_payload())
    assert response.status_code == 200
    assert response.json() == {"success": True}

    listing = client.get("/api/users", params={"tenant": "acme"})
    assert listing.status_code == 200
    body = listing.json()
    assert body["totalCount"] == 1
    assert body["activeCount"] == 1
    assert "error" not in body

    [user] = body["users"]
    assert user["userEmail"] == "alice@x.com"
    assert user["isActive"] is True
    assert user["lastSeen"] == "just now"
    [activity] = user["activities"]
    assert activity["repoName"] == "r1"
    assert activity["machineName"] == "M1"
    assert activity["modifiedFiles"][1] == {
        "filePath": "README.md",
        "status": "Untracked",
        "isStaged": False,
    }


def test_query_without_tenant_is_rejected(client: TestClient) -> None:
    client.post("/api/git-activity", json=_payload())

    for params in ({}, {"tenant": ""}, {"tenant": "  ", "active": "true"}):
        response = client.get("/api/users", params=params)
        assert response.status_code == 400
        assert response.json() == {
            "error": "Tenant parameter is required",
            "users": [],
            "totalCount": 0,
            "activeCount": 0,
        }


def test_other_tenants_are_not_visible(client: TestClient) -> None:
    client.post("/api/git-activity", json=_payload(tenant="a"))
    client.post("/api/git-activity", json=_payload(tenant="b", userEmail="bob@x.com"))

    body = client.get("/api/users", params={"tenant": "b"}).json()

    assert [user["userEmail"] for user in body["users"]] == ["bob@x.com"]
    assert body["totalCount"] == 1
    assert body["activeCount"] == 1


def test_active_filter_excludes_idle_users(client: TestClient) -> None:
    idle_time = datetime.now(timezone.utc) - timedelta(hours=2)
    client.post("/api/git-activity", json=_payload())
    client.post(
        "/api/git-activity",
        json=_payload(userEmail="idle@x.com", timestamp=idle_time.isoformat()),
    )

    everyone = client.get("/api/users", params={"tenant": "acme"}).json()
    assert everyone["totalCount"] == 2
    assert everyone["activeCount"] == 1
    assert everyone["users"][1]["lastSeen"] == "2h ago"

    active = client.get("/api/users", params={"tenant": "acme", "active": "true"}).json()
    assert [user["userEmail"] for user in active["users"]] == ["alice@x.com"]
    assert active["totalCount"] == 1


def test_missing_tenant_on_ingestion_uses_default(client: TestClient) -> None:
    payload = _payload()
    del payload["tenant"]
    client.post("/api/git-activity", json=payload)

    body = client.get("/api/users", params={"tenant": "default"}).json()
    assert body["totalCount"] == 1


def test_blank_email_is_rejected(client: TestClient) -> None:
    response = client.post("/api/git-activity", json=_payload(userEmail="  "))
    assert response.status_code == 400


def test_raw_git_status_codes_are_mapped(client: TestClient) -> None:
    codes = ["Modified", "R100", "C075", "T", "A", "??", "Exploded"]
    payload = _payload(
        modifiedFiles=[
            {"filePath": f"f{index}", "status": code, "isStaged": False}
            for index, code in enumerate(codes)
        ]
    )
    response = client.post("/api/git-activity", json=payload)
    assert response.status_code == 200

    body = client.get("/api/users", params={"tenant": "acme"}).json()
    assert body["totalCount"] == 1
    [activity] = body["users"][0]["activities"]
    assert [edit["status"] for edit in activity["modifiedFiles"]] == [
        "Modified",
        "Renamed",
        "Copied",
        "Modified",
        "Added",
        "Untracked",
        "Modified",
    ]


def test_dotnet_timestamp_with_seven_fraction_digits(client: TestClient) -> None:
    response = client.post(
        "/api/git-activity",
        json=_payload(timestamp="2025-03-01T09:00:00.1234567Z"),
    )
    assert response.status_code == 200

    user = client.get("/api/users/alice@x.com", params={"tenant": "acme"}).json()
    assert user["lastActivity"].startswith("2025-03-01T09:00:00.123456")


def test_read_single_user(client: TestClient) -> None:
    client.post("/api/git-activity", json=_payload())

    found = client.get("/api/users/Alice@X.com", params={"tenant": "ACME"})
    assert found.status_code == 200
    assert found.json()["userName"] == "Alice"

    missing = client.get("/api/users/nobody@x.com", params={"tenant": "acme"})
    assert missing.status_code == 404

    no_tenant = client.get("/api/users/alice@x.com")
    assert no_tenant.status_code == 400


def test_storage_status(client: TestClient) -> None:
    response = client.get("/api/storage")
    assert response.status_code == 200
    assert response.json() == {"storageType": "file", "configured": True}


def test_unconfigured_document_backend_fails_loudly(tmp_path: Path) -> None:
    from main import create_app

    settings = Settings(
        storage_type="cosmos",
        cosmos_endpoint="",
        cosmos_key="",
        retention_sweep_enabled=False,
    )
    with TestClient(create_app(settings)) as client:
        status_response = client.get("/api/storage")
        assert status_response.json() == {"storageType": "document", "configured": False}

        response = client.post("/api/git-activity", json=_payload())
        assert response.status_code == 500

        listing = client.get("/api/users", params={"tenant": "acme"})
        assert listing.status_code == 500


def test_lifespan_starts_and_stops_retention_sweeper(tmp_path: Path) -> None:
    from main import create_app

    settings = Settings(data_dir=tmp_path, retention_sweep_interval_seconds=3600)
    app = create_app(settings)
    with TestClient(app):
        assert app.state.retention_sweeper.running is True
    assert app.state.retention_sweeper.running is False
