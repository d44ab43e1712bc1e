import uuid

import pytest

from routers.disputes.helpers import dispute_helpers


async def raise_dispute(client, user, order_id, **overrides):
    payload = {
        "order_id": str(order_id),
        "subject": "Wrong fabric",
        "description": "The kurta was stitched in polyester instead of cotton",
    }
    payload.update(overrides)
    response = await client.post("/disputes", json=payload, headers=user.headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_customer_raises_dispute(client, customer, tailor, placed_order):
    dispute = await raise_dispute(client, customer, placed_order.id)
    assert dispute["status"] == "open"
    assert dispute["priority"] == "medium"
    assert dispute["raised_by"] == "customer"
    assert dispute["customer_id"] == customer.profile_id
    assert dispute["tailor_id"] == tailor.profile_id
    assert dispute["resolved_at"] is None


async def test_tailor_raises_dispute_with_priority(client, tailor, placed_order):
    dispute = await raise_dispute(client, tailor, placed_order.id, priority="high")
    assert dispute["raised_by"] == "tailor"
    assert dispute["priority"] == "high"


async def test_dispute_visibility(client, customer, other_customer, tailor, admin, placed_order):
    dispute = await raise_dispute(client, customer, placed_order.id)

    for user in (customer, tailor, admin):
        response = await client.get("/disputes", headers=user.headers)
        assert [d["id"] for d in response.json()["disputes"]] == [dispute["id"]]

    response = await client.get("/disputes", headers=other_customer.headers)
    assert response.json()["total"] == 0

    response = await client.get(f"/disputes/{dispute['id']}", headers=other_customer.headers)
    assert response.status_code == 403


async def test_outsider_cannot_raise_dispute(client, other_customer, placed_order):
    response = await client.post(
        "/disputes",
        json={"order_id": str(placed_order.id), "subject": "x", "description": "y"},
        headers=other_customer.headers
    )
    assert response.status_code == 403


async def test_admin_cannot_raise_dispute(client, admin, placed_order):
    response = await client.post(
        "/disputes",
        json={"order_id": str(placed_order.id), "subject": "x", "description": "y"},
        headers=admin.headers
    )
    assert response.status_code == 403


async def test_resolution_stamps_and_clears_resolved_at(client, customer, admin, placed_order):
    dispute = await raise_dispute(client, customer, placed_order.id)
    url = f"/disputes/{dispute['id']}/status"

    response = await client.put(
        url, json={"status": "resolved", "resolution_notes": "Refund issued"}, headers=admin.headers
    )
    assert response.status_code == 200
    resolved = response.json()
    assert resolved["status"] == "resolved"
    assert resolved["resolution_notes"] == "Refund issued"
    assert resolved["resolved_at"] is not None
    assert resolved["resolved_by"] == admin.user_id

    response = await client.put(url, json={"status": "in_progress"}, headers=admin.headers)
    reopened = response.json()
    assert reopened["status"] == "in_progress"
    assert reopened["resolved_at"] is None
    assert reopened["resolved_by"] is None


async def test_only_admin_changes_dispute_status(client, customer, placed_order):
    dispute = await raise_dispute(client, customer, placed_order.id)
    response = await client.put(
        f"/disputes/{dispute['id']}/status", json={"status": "closed"}, headers=customer.headers
    )
    assert response.status_code == 403


async def test_dispute_thread(client, customer, tailor, admin, placed_order):
    dispute = await raise_dispute(client, customer, placed_order.id)
    url = f"/disputes/{dispute['id']}/messages"

    for user, content in ((customer, "Please replace it"), (tailor, "Will redo it this week"), (admin, "Noted")):
        response = await client.post(url, json={"content": content}, headers=user.headers)
        assert response.status_code == 201

    response = await client.get(url, headers=tailor.headers)
    thread = response.json()
    assert [m["content"] for m in thread] == ["Please replace it", "Will redo it this week", "Noted"]
    assert [m["sender_type"] for m in thread] == ["customer", "tailor", "admin"]
    assert thread[0]["sender_id"] == customer.user_id

    response = await client.get(f"/disputes/{dispute['id']}", headers=customer.headers)
    assert response.status_code == 200
    assert len(response.json()["messages"]) == 3


async def test_unknown_dispute_is_404(client, customer):
    response = await client.get(f"/disputes/{uuid.uuid4()}", headers=customer.headers)
    assert response.status_code == 404


async def test_update_dispute_status_validation(db, customer, tailor, placed_order):
    dispute = await dispute_helpers.create_dispute(
        db, placed_order.id, customer.profile.id, tailor.profile.id, "Late", "Two weeks late", "customer"
    )
    with pytest.raises(ValueError):
        await dispute_helpers.update_dispute_status(db, dispute.id, "escalated")
    assert await dispute_helpers.update_dispute_status(db, uuid.uuid4(), "closed") is None
