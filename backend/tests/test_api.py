"""Tests for the HTTP API."""

from datetime import datetime
from decimal import Decimal

import pytest
from httpx import AsyncClient


async def create_bundle(client: AsyncClient, descriptor="1x Post + 1x Miniature") -> dict:
    response = await client.post(
        "/api/parents",
        json={"descriptor": descriptor, "kind": "bundled", "owner_id": "designer-1"}
    )
    assert response.status_code == 201
    return response.json()


async def deliver(client: AsyncClient, parent_id: str, label: str = None) -> dict:
    body = {"payload_ref": "https://drive.example.com/file/abc", "payload_type": "link", "link_type": "drive"}
    if label:
        body["item_label"] = label
    response = await client.post(f"/api/parents/{parent_id}/deliveries", json=body)
    assert response.status_code == 201
    return response.json()


async def issue_link(client: AsyncClient, delivery_id: str) -> dict:
    response = await client.post(f"/api/deliveries/{delivery_id}/review-links")
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_create_parent_returns_line_items(client: AsyncClient):
    parent = await create_bundle(client, "[2x Post + 1x Carousel 6p] rush job")

    assert parent["status"] == "new"
    assert parent["kind"] == "bundled"
    assert [item["label"] for item in parent["line_items"]] == ["Post 1", "Post 2", "Carousel 1 6p"]
    assert parent["line_items"][2]["pages"] == 6

    response = await client.get(f"/api/parents/{parent['id']}")
    assert response.status_code == 200
    assert response.json()["descriptor"] == "[2x Post + 1x Carousel 6p] rush job"


@pytest.mark.asyncio
async def test_review_round_trip(client: AsyncClient):
    parent = await create_bundle(client)
    delivery = await deliver(client, parent["id"], "Post 1")
    assert delivery["version_number"] == 1

    link = await issue_link(client, delivery["id"])
    assert link["delivery_id"] == delivery["id"]

    response = await client.get(f"/api/review/{link['token']}")
    assert response.status_code == 200
    resolved = response.json()
    assert resolved["valid"] is True
    assert resolved["delivery"]["id"] == delivery["id"]
    assert resolved["parent"]["status"] == "review_client"
    assert resolved["link"]["views_count"] == 1
    assert [d["id"] for d in resolved["batch"]] == [delivery["id"]]

    response = await client.post(
        f"/api/review/{link['token']}/feedback",
        json={"decision": "approved", "rating": 5}
    )
    assert response.status_code == 200
    result = response.json()
    assert result["new_status"] == "review_client"
    assert result["item_progress"]["completed"] == 1
    assert result["item_progress"]["total"] == 2

    response = await client.post(f"/api/review/{link['token']}/feedback", json={"decision": "approved"})
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "INVALID_STATE_TRANSITION"

    resolved = (await client.get(f"/api/review/{link['token']}")).json()
    assert resolved["valid"] is False
    assert resolved["reason"] == "inactive"

    response = await client.get(f"/api/parents/{parent['id']}/status")
    assert response.status_code == 200
    status = response.json()
    assert status["status"] == "review_client"
    assert status["display_status"] == "review_client"
    assert status["item_progress"]["pending_labels"] == ["Miniature 1"]

    period = datetime.utcnow().strftime("%Y-%m")
    response = await client.get("/api/earnings/designer-1", params={"period": period})
    assert response.status_code == 200
    earnings = response.json()
    assert Decimal(str(earnings["total"])) == Decimal("40")
    assert earnings["granularity"] == "month"
    assert [r["item_label"] for r in earnings["records"]] == ["Post 1"]
    assert len(earnings["by_day"]) == 1


@pytest.mark.asyncio
async def test_revision_request_via_api(client: AsyncClient):
    parent = await create_bundle(client)
    delivery = await deliver(client, parent["id"], "Miniature 1")
    link = await issue_link(client, delivery["id"])

    response = await client.post(f"/api/review/{link['token']}/feedback", json={"decision": "revision_requested"})
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    response = await client.post(
        f"/api/review/{link['token']}/feedback",
        json={"decision": "revision_requested", "revision_notes": "Bigger title"}
    )
    assert response.status_code == 200
    assert response.json()["new_status"] == "revision_requested"
    assert response.json()["revision_count"] == 1


@pytest.mark.asyncio
async def test_superseded_link_is_gone(client: AsyncClient):
    parent = await create_bundle(client)
    delivery = await deliver(client, parent["id"], "Post 1")
    old = await issue_link(client, delivery["id"])
    await issue_link(client, delivery["id"])

    response = await client.post(f"/api/review/{old['token']}/feedback", json={"decision": "approved"})

    assert response.status_code == 410
    assert response.json()["detail"]["code"] == "LINK_INACTIVE"


@pytest.mark.asyncio
async def test_lifecycle_endpoints(client: AsyncClient):
    response = await client.post("/api/parents", json={"descriptor": "Brand film", "kind": "single"})
    parent = response.json()

    response = await client.post(f"/api/parents/{parent['id']}/start")
    assert response.status_code == 200
    assert response.json()["status"] == "active"
    assert response.json()["started_at"] is not None

    await deliver(client, parent["id"])
    response = await client.post(
        f"/api/parents/{parent['id']}/admin-revision",
        json={"notes": "Audio peaks at 1:20"}
    )
    assert response.status_code == 200
    assert response.json()["status"] == "revision_requested"
    assert response.json()["revision_count"] == 1

    await deliver(client, parent["id"])
    response = await client.get(f"/api/parents/{parent['id']}/deliveries")
    assert [d["version_number"] for d in response.json()] == [1, 2]

    response = await client.post(f"/api/parents/{parent['id']}/cancel", json={"reason": "budget cut"})
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    response = await client.post(f"/api/parents/{parent['id']}/start")
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "INVALID_STATE_TRANSITION"


@pytest.mark.asyncio
async def test_error_mapping(client: AsyncClient):
    response = await client.get("/api/parents/does-not-exist")
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "NOT_FOUND"

    response = await client.get("/api/parents/does-not-exist/events")
    assert response.status_code == 404

    response = await client.post("/api/parents", json={"descriptor": "3x Banner", "kind": "bundled"})
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    response = await client.post("/api/review/unknown-token/feedback", json={"decision": "approved"})
    assert response.status_code == 404

    response = await client.get("/api/review/unknown-token")
    assert response.status_code == 200
    assert response.json() == {
        "valid": False,
        "reason": "not_found",
        "link": None,
        "delivery": None,
        "parent": None,
        "batch": [],
    }

    response = await client.get("/api/earnings/designer-1", params={"period": "last-month"})
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_bundled_delivery_with_unknown_label(client: AsyncClient):
    parent = await create_bundle(client)

    response = await client.post(
        f"/api/parents/{parent['id']}/deliveries",
        json={"payload_ref": "uploads/a.png", "item_label": "Carousel 1"}
    )

    assert response.status_code == 422
    assert "Carousel 1" in response.json()["detail"]["message"]


@pytest.mark.asyncio
async def test_oversized_descriptor_is_rejected(client: AsyncClient):
    response = await client.post("/api/parents", json={"descriptor": "999999999x Post", "kind": "bundled"})

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
