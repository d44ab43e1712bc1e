import asyncio
import uuid

import pytest

from routers.orders.helpers import order_helpers
from routers.tracking.helpers import calculate_distance, get_maps_url, tracking_helpers
from routers.tracking.tracking import tracking_websocket
from utils.realtime import realtime_hub

from conftest import RecordingWebSocket

BENGALURU = (12.9716, 77.5946)
MYSURU = (12.2958, 76.6394)


def test_distance_to_same_point_is_zero():
    assert calculate_distance(*BENGALURU, *BENGALURU) == 0


def test_distance_is_symmetric_and_positive():
    there = calculate_distance(*BENGALURU, *MYSURU)
    back = calculate_distance(*MYSURU, *BENGALURU)
    assert there == pytest.approx(back)
    assert 120 < there < 135


def test_one_degree_of_latitude():
    assert calculate_distance(0, 0, 1, 0) == pytest.approx(111.195, rel=1e-3)


def test_maps_url_embeds_coordinates():
    url = get_maps_url(12.9716, 77.5946)
    assert url.startswith("https://www.google.com/maps/embed?pb=")
    assert "!2d77.5946!3d12.9716" in url


async def post_location(client, tailor, order_id, latitude, longitude, status="in_transit", address=None):
    response = await client.post(
        f"/tracking/{order_id}",
        json={"latitude": latitude, "longitude": longitude, "status": status, "address": address},
        headers=tailor.headers
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_latest_location_with_distance_from_tailor(client, customer, tailor, placed_order):
    await post_location(client, tailor, placed_order.id, *BENGALURU, status="in_transit")
    latest = await post_location(client, tailor, placed_order.id, *MYSURU, status="out_for_delivery", address="Mysuru")
    assert latest["updated_by"] == tailor.profile_id

    response = await client.get(f"/tracking/{placed_order.id}/latest", headers=customer.headers)
    assert response.status_code == 200
    body = response.json()
    assert body["tracking"]["id"] == latest["id"]
    assert body["tracking"]["status"] == "out_for_delivery"
    assert "!3d12.2958" in body["maps_url"]
    assert body["distance_km"] == round(calculate_distance(*BENGALURU, *MYSURU), 2)


async def test_tracking_history_newest_first(client, customer, tailor, placed_order):
    first = await post_location(client, tailor, placed_order.id, 12.97, 77.59)
    second = await post_location(client, tailor, placed_order.id, 12.98, 77.60, status="delivered")

    response = await client.get(f"/tracking/{placed_order.id}", headers=customer.headers)
    body = response.json()
    assert body["order_id"] == str(placed_order.id)
    assert [update["id"] for update in body["updates"]] == [second["id"], first["id"]]


async def test_latest_without_updates(client, customer, placed_order):
    response = await client.get(f"/tracking/{placed_order.id}/latest", headers=customer.headers)
    assert response.status_code == 200
    assert response.json() == {"tracking": None, "maps_url": None, "distance_km": None}


async def test_latest_without_tailor_location_has_no_distance(client, customer, create_user, session_factory):
    roaming = await create_user("tailor")
    async with session_factory() as session:
        order = await order_helpers.create_order(
            session, customer.profile.id, roaming.profile.id, 800.0,
            items=[{"garment_type": "sherwani", "unit_price": 800.0}]
        )

    await post_location(client, roaming, order.id, *MYSURU)
    response = await client.get(f"/tracking/{order.id}/latest", headers=customer.headers)
    assert response.json()["distance_km"] is None


async def test_only_the_orders_tailor_posts_locations(client, customer, create_user, placed_order):
    response = await client.post(
        f"/tracking/{placed_order.id}",
        json={"latitude": 12.0, "longitude": 77.0, "status": "in_transit"},
        headers=customer.headers
    )
    assert response.status_code == 403

    stranger = await create_user("tailor")
    response = await client.post(
        f"/tracking/{placed_order.id}",
        json={"latitude": 12.0, "longitude": 77.0, "status": "in_transit"},
        headers=stranger.headers
    )
    assert response.status_code == 403


async def test_location_validation(client, tailor, placed_order):
    response = await client.post(
        f"/tracking/{placed_order.id}",
        json={"latitude": 95.0, "longitude": 77.0, "status": "in_transit"},
        headers=tailor.headers
    )
    assert response.status_code == 422

    response = await client.post(
        f"/tracking/{placed_order.id}",
        json={"latitude": 12.0, "longitude": 77.0, "status": "teleported"},
        headers=tailor.headers
    )
    assert response.status_code == 422


async def test_tracking_for_unknown_order(client, customer):
    response = await client.get(f"/tracking/{uuid.uuid4()}", headers=customer.headers)
    assert response.status_code == 404


async def test_location_update_is_published_to_order_subscribers(db, tailor, placed_order):
    async with realtime_hub.subscribe("delivery_tracking", "order_id", placed_order.id) as subscription:
        tracking = await tracking_helpers.update_delivery_location(
            db, placed_order.id, *BENGALURU, tracking_status="in_transit", tailor_id=tailor.profile.id
        )
        event = await asyncio.wait_for(subscription.__anext__(), timeout=1)

    assert event.table == "delivery_tracking"
    assert event.new["id"] == str(tracking.id)
    assert event.new["order_id"] == str(placed_order.id)
    assert event.new["latitude"] == BENGALURU[0]
    assert realtime_hub.subscriber_count("delivery_tracking") == 0


async def test_update_location_rejects_unknown_status(db, tailor, placed_order):
    with pytest.raises(ValueError):
        await tracking_helpers.update_delivery_location(
            db, placed_order.id, 1.0, 2.0, tracking_status="lost", tailor_id=tailor.profile.id
        )


async def test_websocket_streams_without_holding_a_transaction(session_factory, customer, placed_order):
    async with session_factory() as session:
        websocket = RecordingWebSocket(session)
        await tracking_websocket(websocket, placed_order.id, token=customer.token, db=session)

    assert websocket.accepted
    assert websocket.transaction_open_on_accept is False
    assert realtime_hub.subscriber_count("delivery_tracking") == 0


async def test_websocket_refuses_outsiders(db, other_customer, placed_order):
    websocket = RecordingWebSocket(db)
    await tracking_websocket(websocket, placed_order.id, token=other_customer.token, db=db)
    assert websocket.close_code == 4003
    assert not websocket.accepted
