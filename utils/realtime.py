"""
In-process realtime channel for row-insert notifications.

Subscribers register a (table, column, value) predicate and receive every
row published for that table whose column equals the value. Delivery is
best-effort: there is no backfill, sequence numbering or de-duplication, so a
row inserted between an initial fetch and subscribe() can be missed.
"""
from typing import Any, Dict, Optional, Set
from pydantic import BaseModel
from fastapi import WebSocket, WebSocketDisconnect
import asyncio
import logging

logger = logging.getLogger(__name__)


class RealtimeEvent(BaseModel):
    event: str = "INSERT"
    table: str
    new: Dict[str, Any]


class Subscription:
    """
    A lazy, infinite, non-restartable stream of row-change events.

    Iterate with ``async for``; the stream only ends once close() is called,
    and a closed subscription cannot be reopened.
    """

    _CLOSED = object()

    def __init__(self, hub: "RealtimeHub", table: str, column: str, value: str):
        self.table = table
        self.column = column
        self.value = value
        self._hub = hub
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def matches(self, table: str, row: Dict[str, Any]) -> bool:
        return table == self.table and str(row.get(self.column)) == self.value

    def deliver(self, event: RealtimeEvent):
        if not self._closed:
            self._queue.put_nowait(event)

    def close(self):
        if self._closed:
            return
        self._closed = True
        self._hub._unregister(self)
        self._queue.put_nowait(self._CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> RealtimeEvent:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is self._CLOSED:
            raise StopAsyncIteration
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.close()


class RealtimeHub:
    """Fans published rows out to matching subscriptions"""

    def __init__(self):
        # table -> live subscriptions on that table
        self._subscriptions: Dict[str, Set[Subscription]] = {}

    def subscribe(self, table: str, column: str, value: Any) -> Subscription:
        subscription = Subscription(self, table, column, str(value))
        self._subscriptions.setdefault(table, set()).add(subscription)
        logger.info(f"Realtime subscribe - Table: {table}, Filter: {column}=eq.{value}")
        return subscription

    def _unregister(self, subscription: Subscription):
        subscriptions = self._subscriptions.get(subscription.table)
        if subscriptions is None:
            return
        subscriptions.discard(subscription)
        if not subscriptions:
            del self._subscriptions[subscription.table]

    def publish(self, table: str, row: Dict[str, Any], event: str = "INSERT") -> int:
        """Deliver a row to every matching subscription; returns the delivery count"""
        payload = RealtimeEvent(event=event, table=table, new=row)
        delivered = 0
        for subscription in list(self._subscriptions.get(table, ())):
            if subscription.matches(table, row):
                subscription.deliver(payload)
                delivered += 1
        return delivered

    def subscriber_count(self, table: Optional[str] = None) -> int:
        if table is not None:
            return len(self._subscriptions.get(table, ()))
        return sum(len(subs) for subs in self._subscriptions.values())


async def stream_subscription(websocket: WebSocket, subscription: Subscription):
    """
    Forward subscription events to an accepted WebSocket until either side ends.
    Client "ping" frames are answered with "pong".
    """

    async def receive_loop():
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")

    async def send_loop():
        async for event in subscription:
            await websocket.send_json(event.model_dump(mode="json"))

    receiver = asyncio.create_task(receive_loop())
    sender = asyncio.create_task(send_loop())
    try:
        done, pending = await asyncio.wait({receiver, sender}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                raise error
    finally:
        subscription.close()


# Singleton instance
realtime_hub = RealtimeHub()
