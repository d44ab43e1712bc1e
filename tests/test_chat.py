import asyncio
import uuid

from models import Conversation
from routers.chat.chat import chat_websocket
from routers.chat.helpers import chat_helpers
from utils.realtime import realtime_hub

from conftest import RecordingWebSocket


async def open_conversation(client, customer, tailor):
    response = await client.post(
        "/chat/conversations", json={"tailor_id": tailor.profile_id}, headers=customer.headers
    )
    assert response.status_code == 200, response.text
    return response.json()


async def test_same_pair_gets_same_conversation(client, customer, tailor):
    first = await open_conversation(client, customer, tailor)
    second = await open_conversation(client, customer, tailor)
    assert first["id"] == second["id"]

    response = await client.post(
        "/chat/conversations", json={"customer_id": customer.profile_id}, headers=tailor.headers
    )
    assert response.status_code == 200
    assert response.json()["id"] == first["id"]
    assert first["is_active"] is True


async def test_open_conversation_requires_counterpart(client, customer, tailor):
    response = await client.post("/chat/conversations", json={}, headers=customer.headers)
    assert response.status_code == 400

    response = await client.post(
        "/chat/conversations", json={"tailor_id": str(uuid.uuid4())}, headers=customer.headers
    )
    assert response.status_code == 404

    response = await client.post("/chat/conversations", json={}, headers=tailor.headers)
    assert response.status_code == 400


async def test_messages_are_returned_oldest_first(client, customer, tailor):
    conversation = await open_conversation(client, customer, tailor)
    url = f"/chat/conversations/{conversation['id']}/messages"

    for sender, content in ((customer, "Hello, can you stitch a lehenga?"), (tailor, "Yes, share your measurements"), (customer, "Sent!")):
        response = await client.post(url, json={"content": content}, headers=sender.headers)
        assert response.status_code == 201
        assert response.json()["is_read"] is False

    response = await client.get(url, headers=tailor.headers)
    assert response.status_code == 200
    messages = response.json()
    assert [m["content"] for m in messages] == [
        "Hello, can you stitch a lehenga?", "Yes, share your measurements", "Sent!"
    ]
    assert [m["sender_type"] for m in messages] == ["customer", "tailor", "customer"]
    assert messages[0]["sender_id"] == customer.user_id
    assert messages[1]["sender_id"] == tailor.user_id


async def test_mark_messages_read(client, customer, tailor):
    conversation = await open_conversation(client, customer, tailor)
    url = f"/chat/conversations/{conversation['id']}"
    await client.post(f"{url}/messages", json={"content": "one"}, headers=customer.headers)
    await client.post(f"{url}/messages", json={"content": "two"}, headers=customer.headers)

    response = await client.post(f"{url}/read", headers=tailor.headers)
    assert response.status_code == 200
    assert response.json() == {"conversation_id": conversation["id"], "marked_read": 2}

    response = await client.post(f"{url}/read", headers=tailor.headers)
    assert response.json()["marked_read"] == 0

    response = await client.get(f"{url}/messages", headers=customer.headers)
    assert all(m["is_read"] for m in response.json())


async def test_conversation_list_is_most_recent_first(client, customer, tailor, create_user):
    second_tailor = await create_user("tailor")
    older = await open_conversation(client, customer, tailor)
    newer = await open_conversation(client, customer, second_tailor)

    await client.post(
        f"/chat/conversations/{older['id']}/messages", json={"content": "bump"}, headers=customer.headers
    )

    response = await client.get("/chat/conversations", headers=customer.headers)
    listed = response.json()
    assert listed["total"] == 2
    assert [c["id"] for c in listed["conversations"]] == [older["id"], newer["id"]]


async def test_closed_conversation_rejects_messages(client, customer, tailor):
    conversation = await open_conversation(client, customer, tailor)
    url = f"/chat/conversations/{conversation['id']}"

    response = await client.post(f"{url}/close", headers=customer.headers)
    assert response.status_code == 200
    assert response.json()["is_active"] is False

    response = await client.post(f"{url}/messages", json={"content": "anyone?"}, headers=tailor.headers)
    assert response.status_code == 400

    response = await client.get("/chat/conversations", headers=customer.headers)
    assert response.json()["total"] == 0


async def test_outsider_cannot_read_conversation(client, customer, other_customer, tailor):
    conversation = await open_conversation(client, customer, tailor)

    response = await client.get(
        f"/chat/conversations/{conversation['id']}/messages", headers=other_customer.headers
    )
    assert response.status_code == 403

    response = await client.get(f"/chat/conversations/{uuid.uuid4()}", headers=customer.headers)
    assert response.status_code == 404


async def test_admin_can_read_but_not_write(client, customer, tailor, admin):
    conversation = await open_conversation(client, customer, tailor)

    response = await client.get(f"/chat/conversations/{conversation['id']}", headers=admin.headers)
    assert response.status_code == 200

    response = await client.post(
        f"/chat/conversations/{conversation['id']}/messages", json={"content": "hi"}, headers=admin.headers
    )
    assert response.status_code == 403


async def test_empty_message_is_rejected(client, customer, tailor):
    conversation = await open_conversation(client, customer, tailor)
    response = await client.post(
        f"/chat/conversations/{conversation['id']}/messages", json={"content": ""}, headers=customer.headers
    )
    assert response.status_code == 422


async def test_send_message_publishes_to_conversation_subscribers(db, customer, tailor):
    conversation = await chat_helpers.get_or_create_conversation(db, customer.profile.id, tailor.profile.id)
    unrelated = realtime_hub.subscribe("messages", "conversation_id", uuid.uuid4())

    async with realtime_hub.subscribe("messages", "conversation_id", conversation.id) as subscription:
        message = await chat_helpers.send_message(
            db, conversation.id, customer.user_id, "customer", "Is my kurta ready?"
        )
        event = await asyncio.wait_for(subscription.__anext__(), timeout=1)

    assert event.table == "messages"
    assert event.event == "INSERT"
    assert event.new["id"] == str(message.id)
    assert event.new["content"] == "Is my kurta ready?"
    assert unrelated._queue.empty()
    unrelated.close()


async def test_send_message_to_missing_conversation(db, customer):
    assert await chat_helpers.send_message(db, uuid.uuid4(), customer.user_id, "customer", "hello") is None


async def test_get_or_create_is_idempotent(db, customer, tailor):
    first = await chat_helpers.get_or_create_conversation(db, customer.profile.id, tailor.profile.id)
    second = await chat_helpers.get_or_create_conversation(db, str(customer.profile.id), str(tailor.profile.id))
    assert first.id == second.id


async def test_concurrent_insert_falls_back_to_existing_conversation(
    db, session_factory, customer, tailor, monkeypatch
):
    lookup = chat_helpers.find_conversation
    calls = []
    winner_ids = []

    async def find_after_rival_insert(session, customer_id, tailor_id):
        calls.append(customer_id)
        if len(calls) == 1:
            async with session_factory() as rival:
                winner = Conversation(customer_id=customer.profile.id, tailor_id=tailor.profile.id)
                rival.add(winner)
                await rival.commit()
                winner_ids.append(winner.id)
            return None
        return await lookup(session, customer_id, tailor_id)

    monkeypatch.setattr(chat_helpers, "find_conversation", find_after_rival_insert)

    conversation = await chat_helpers.get_or_create_conversation(db, customer.profile.id, tailor.profile.id)
    assert conversation.id == winner_ids[0]
    assert len(calls) == 2


async def test_websocket_releases_database_session_before_streaming(session_factory, customer, tailor):
    async with session_factory() as session:
        conversation = await chat_helpers.get_or_create_conversation(
            session, customer.profile.id, tailor.profile.id
        )

    async with session_factory() as session:
        websocket = RecordingWebSocket(session)
        await chat_websocket(websocket, conversation.id, token=customer.token, db=session)

    assert websocket.accepted
    assert websocket.transaction_open_on_accept is False
    assert realtime_hub.subscriber_count("messages") == 0


async def test_websocket_without_token_is_refused(db, customer, tailor):
    conversation = await chat_helpers.get_or_create_conversation(db, customer.profile.id, tailor.profile.id)
    websocket = RecordingWebSocket(db)
    await chat_websocket(websocket, conversation.id, token=None, db=db)
    assert websocket.close_code == 4001
    assert not websocket.accepted
