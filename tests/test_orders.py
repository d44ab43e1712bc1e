import uuid

import pytest

from models import DesignModel
from routers.orders.helpers import order_helpers, generate_order_number


async def place_order(client, customer, payload):
    response = await client.post("/orders", json=payload, headers=customer.headers)
    assert response.status_code == 201, response.text
    return response.json()


def test_order_numbers_are_unique_and_increasing():
    numbers = [generate_order_number() for _ in range(50)]
    assert len(set(numbers)) == 50
    assert all(number.startswith("ORD-") for number in numbers)
    millis = [int(number[4:]) for number in numbers]
    assert millis == sorted(millis)


async def test_order_lifecycle_from_placement_to_delivery(client, customer, tailor, order_payload, notifications):
    order = await place_order(client, customer, order_payload)
    assert order["status"] == "pending"
    assert order["total_amount"] == 1500.0
    assert order["customer_id"] == customer.profile_id
    assert order["tailor_id"] == tailor.profile_id
    assert order["order_number"].startswith("ORD-")
    assert notifications.email.called

    response = await client.get("/orders", headers=tailor.headers)
    assert response.status_code == 200
    tailor_orders = response.json()["orders"]
    assert [o["id"] for o in tailor_orders] == [order["id"]]
    assert tailor_orders[0]["status"] == "pending"

    response = await client.post(f"/orders/{order['id']}/accept", headers=tailor.headers)
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"

    response = await client.get(f"/orders/{order['id']}/history", headers=customer.headers)
    history = response.json()
    assert [entry["status"] for entry in history] == ["pending", "accepted"]
    assert history[0]["notes"] == "Order placed"
    assert history[0]["changed_by"] == customer.user_id
    assert history[1]["notes"] == "Order accepted by tailor"
    assert history[1]["changed_by"] == tailor.user_id

    response = await client.post(f"/orders/{order['id']}/complete", headers=customer.headers)
    assert response.status_code == 200
    completed = response.json()
    assert completed["status"] == "delivered"
    assert completed["actual_delivery_date"] is not None


async def test_order_details_include_items_and_history(client, customer, order_payload):
    order = await place_order(client, customer, order_payload)

    response = await client.get(f"/orders/{order['id']}", headers=customer.headers)
    assert response.status_code == 200
    details = response.json()
    assert len(details["items"]) == 2
    assert {item["garment_type"] for item in details["items"]} == {"kurta", "salwar"}
    assert [entry["status"] for entry in details["status_history"]] == ["pending"]

    response = await client.get(f"/orders/{order['id']}/items", headers=customer.headers)
    assert sum(item["quantity"] * item["unit_price"] for item in response.json()) == 1500.0


async def test_customer_sees_only_own_orders(client, customer, other_customer, order_payload):
    order = await place_order(client, customer, order_payload)

    response = await client.get("/orders", headers=other_customer.headers)
    assert response.json() == {"orders": [], "total": 0}

    response = await client.get(f"/orders/{order['id']}", headers=other_customer.headers)
    assert response.status_code == 403


async def test_admin_lists_every_order(client, customer, admin, order_payload):
    await place_order(client, customer, order_payload)
    await place_order(client, customer, order_payload)

    response = await client.get("/orders", headers=admin.headers)
    assert response.status_code == 200
    assert response.json()["total"] == 2


async def test_create_order_validation(client, customer, tailor, order_payload):
    response = await client.post("/orders", json={**order_payload, "items": []}, headers=customer.headers)
    assert response.status_code == 422

    response = await client.post("/orders", json={**order_payload, "tailor_id": "not-a-uuid"}, headers=customer.headers)
    assert response.status_code == 422

    response = await client.post(
        "/orders", json={**order_payload, "tailor_id": str(uuid.uuid4())}, headers=customer.headers
    )
    assert response.status_code == 404

    response = await client.post("/orders", json=order_payload, headers=tailor.headers)
    assert response.status_code == 403


async def test_customer_cannot_accept_order(client, customer, order_payload):
    order = await place_order(client, customer, order_payload)
    response = await client.post(f"/orders/{order['id']}/accept", headers=customer.headers)
    assert response.status_code == 403


async def test_unrelated_tailor_cannot_progress_order(client, customer, create_user, order_payload):
    order = await place_order(client, customer, order_payload)
    stranger = await create_user("tailor")
    response = await client.post(f"/orders/{order['id']}/start", headers=stranger.headers)
    assert response.status_code == 403


async def test_reject_records_reason(client, customer, tailor, order_payload):
    order = await place_order(client, customer, order_payload)

    response = await client.post(
        f"/orders/{order['id']}/reject", json={"reason": "Fabric unavailable"}, headers=tailor.headers
    )
    assert response.status_code == 200
    rejected = response.json()
    assert rejected["status"] == "rejected"
    assert rejected["rejected_reason"] == "Fabric unavailable"

    response = await client.get(f"/orders/{order['id']}/history", headers=tailor.headers)
    assert response.json()[-1]["notes"] == "Fabric unavailable"


async def test_cancel_without_reason(client, customer, order_payload):
    order = await place_order(client, customer, order_payload)

    response = await client.post(f"/orders/{order['id']}/cancel", headers=customer.headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    response = await client.get(f"/orders/{order['id']}/history", headers=customer.headers)
    assert response.json()[-1]["notes"] == "Order cancelled"


async def test_tailor_walks_order_through_workshop_states(client, customer, tailor, order_payload, notifications):
    order = await place_order(client, customer, order_payload)
    notifications.email.reset_mock()

    for action, expected in (("accept", "accepted"), ("start", "in_progress"), ("ready", "ready"), ("ship", "shipped")):
        response = await client.post(f"/orders/{order['id']}/{action}", headers=tailor.headers)
        assert response.status_code == 200
        assert response.json()["status"] == expected

    assert notifications.email.call_count == 4
    assert notifications.email.call_args.args[0] == customer.email

    response = await client.get(f"/orders/{order['id']}/history", headers=customer.headers)
    assert [entry["status"] for entry in response.json()] == ["pending", "accepted", "in_progress", "ready", "shipped"]


async def test_direct_status_update_allows_any_transition(client, customer, tailor, order_payload):
    order = await place_order(client, customer, order_payload)

    response = await client.put(
        f"/orders/{order['id']}/status", json={"status": "shipped", "notes": "Express"}, headers=tailor.headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "shipped"

    response = await client.put(f"/orders/{order['id']}/status", json={"status": "lost"}, headers=tailor.headers)
    assert response.status_code == 422


async def test_unknown_order_is_404(client, customer):
    response = await client.get(f"/orders/{uuid.uuid4()}", headers=customer.headers)
    assert response.status_code == 404


async def test_update_order_status_rejects_unknown_status(db, placed_order):
    with pytest.raises(ValueError):
        await order_helpers.update_order_status(db, placed_order.id, "lost")


async def test_update_order_status_missing_order_returns_none(db):
    assert await order_helpers.update_order_status(db, uuid.uuid4(), "accepted") is None


async def test_orders_listed_newest_first(db, customer, tailor):
    first = await order_helpers.create_order(
        db, customer.profile.id, tailor.profile.id, 100.0,
        items=[{"garment_type": "shirt", "unit_price": 100.0}]
    )
    second = await order_helpers.create_order(
        db, customer.profile.id, tailor.profile.id, 200.0,
        items=[{"garment_type": "trousers", "unit_price": 200.0}]
    )

    orders = await order_helpers.get_customer_orders(db, customer.profile.id)
    assert [o.id for o in orders] == [second.id, first.id]
    assert first.order_number != second.order_number


async def test_order_with_own_measurement_set(client, customer, order_payload):
    measurement = await client.post("/measurements", json={"bust_cm": 86}, headers=customer.headers)
    measurement_id = measurement.json()["id"]

    order = await place_order(client, customer, {**order_payload, "measurement_id": measurement_id})
    assert order["measurement_id"] == measurement_id


async def test_order_rejects_foreign_or_unknown_measurement(client, customer, other_customer, order_payload):
    measurement = await client.post("/measurements", json={"bust_cm": 90}, headers=other_customer.headers)

    for measurement_id in (measurement.json()["id"], str(uuid.uuid4())):
        response = await client.post(
            "/orders", json={**order_payload, "measurement_id": measurement_id}, headers=customer.headers
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "Measurement not found"

    response = await client.get("/orders", headers=customer.headers)
    assert response.json()["total"] == 0


async def test_order_items_must_reference_approved_designs(client, customer, order_payload, db):
    approved = DesignModel(
        name="Anarkali", category="ethnic", garment_type="kurta",
        model_url="https://cdn.example.com/anarkali.glb", is_approved=True
    )
    draft = DesignModel(
        name="Draft", category="ethnic", garment_type="kurta",
        model_url="https://cdn.example.com/draft.glb", is_approved=False
    )
    db.add_all([approved, draft])
    await db.commit()

    item = {"garment_type": "kurta", "quantity": 1, "unit_price": 1500.0}
    payload = {**order_payload, "items": [{**item, "design_model_id": str(draft.id)}]}
    response = await client.post("/orders", json=payload, headers=customer.headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Design not found"

    payload = {**order_payload, "items": [{**item, "design_model_id": str(approved.id)}]}
    order = await place_order(client, customer, payload)
    response = await client.get(f"/orders/{order['id']}/items", headers=customer.headers)
    assert response.json()[0]["design_model_id"] == str(approved.id)
