"""
Test the insights API
"""
import asyncio

import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from conftest import daily_entries, seed_user
from app.main import app


@pytest.fixture
def client(db, service):
    with patch("app.api.insights.insight_service", service), patch("app.api.insights.db_service", db):
        yield TestClient(app)


@pytest.fixture
def entries(db):
    history = daily_entries(10)
    asyncio.run(seed_user(db, entries=history))
    return history


def test_generate_and_dashboard(client, entries):
    response = client.post("/api/v1/insights/generate", json={
        "user_id": "user-1", "entry_id": entries[0].id, "entry_count": 1,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["generated"] is True
    assert body["insight"]["type"] == "milestone"
    assert body["insight"]["generation_metadata"]["model"] == "llama-3.2"

    response = client.get("/api/v1/insights/dashboard", params={"user_id": "user-1"})
    assert response.status_code == 200
    dashboard = response.json()
    assert dashboard["meta"] == {"total": 1, "unread": 1, "favorites": 0, "returned": 1}
    assert dashboard["insights"][0]["id"] == body["insight"]["id"]


def test_generate_counts_entries_when_count_omitted(client, entries):
    response = client.post("/api/v1/insights/generate", json={"user_id": "user-1"})
    assert response.status_code == 200
    assert response.json()["insight"]["trigger_entry_count"] == 10


def test_generate_for_ineligible_count(client, entries):
    response = client.post("/api/v1/insights/generate", json={"user_id": "user-1", "entry_count": 7})
    assert response.status_code == 200
    assert response.json() == {"generated": False, "insight": None}


def test_generate_rejects_unknown_user_and_entry(client, entries):
    response = client.post("/api/v1/insights/generate", json={"user_id": "ghost", "entry_count": 1})
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "USER_NOT_FOUND"

    response = client.post("/api/v1/insights/generate", json={
        "user_id": "user-1", "entry_id": "not-mine", "entry_count": 1,
    })
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "ENTRY_NOT_FOUND"


def test_regenerate_until_limit(client, entries):
    insight = client.post(
        "/api/v1/insights/generate", json={"user_id": "user-1", "entry_count": 10}
    ).json()["insight"]
    url = f"/api/v1/insights/{insight['id']}/regenerate"

    for remaining in (2, 1, 0):
        response = client.post(url, params={"user_id": "user-1"})
        assert response.status_code == 200
        assert response.json()["regenerations_remaining"] == remaining

    response = client.post(url, params={"user_id": "user-1"})
    assert response.status_code == 429
    detail = response.json()["detail"]
    assert detail["code"] == "MONTHLY_LIMIT"
    assert detail["details"] == {"limit": 3, "remaining": 0}

    allowance = client.get("/api/v1/insights/regenerations", params={"user_id": "user-1"}).json()
    assert allowance["used"] == 3
    assert allowance["remaining"] == 0


def test_regenerate_unknown_insight(client, entries):
    response = client.post("/api/v1/insights/missing/regenerate", params={"user_id": "user-1"})
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "NOT_FOUND"


def test_read_and_favorite(client, entries):
    insight = client.post(
        "/api/v1/insights/generate", json={"user_id": "user-1", "entry_count": 5}
    ).json()["insight"]

    response = client.patch(f"/api/v1/insights/{insight['id']}/read", params={"user_id": "user-1"})
    assert response.status_code == 200
    assert response.json()["is_read"] is True

    response = client.patch(f"/api/v1/insights/{insight['id']}/favorite", params={"user_id": "user-1"})
    assert response.status_code == 200
    assert response.json()["is_favorited"] is True

    response = client.patch("/api/v1/insights/missing/read", params={"user_id": "user-1"})
    assert response.status_code == 404

    stats = client.get("/api/v1/insights/stats", params={"user_id": "user-1"}).json()
    assert stats["total_insights"] == 1
    assert stats["unread_insights"] == 0
    assert stats["favorite_insights"] == 1


def test_service_status(client):
    response = client.get("/api/v1/insights/service-status")
    assert response.status_code == 200
    status = response.json()
    assert status["primary_provider"] == "gpt-4o-mini"
    assert status["secondary_provider"] == "llama-3.2"
    assert status["is_primary_available"] is True
    assert status["regenerations_per_insight"] == 3


def test_regenerations_for_unknown_user(client):
    response = client.get("/api/v1/insights/regenerations", params={"user_id": "ghost"})
    assert response.status_code == 404
