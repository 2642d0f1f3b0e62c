"""Fan-out of Supabase realtime change feeds to WebSocket clients.

One vendor channel is opened per topic (e.g. ``chat-<id>``) and shared by every
local subscriber of that topic. Each subscriber gets its own bounded queue of
new-row records; a subscriber that falls behind loses events instead of
blocking the others.
"""
import asyncio
import json
import logging
from contextlib import asynccontextmanager
from functools import partial
from typing import Any, AsyncIterator, Callable, Dict, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder
from starlette.concurrency import run_in_threadpool
from supabase import AsyncClient

from raqm.config import settings
from raqm.database.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


def extract_record(payload: Dict[str, Any]) -> Dict[str, Any]:
    """New row of a postgres_changes payload"""
    data = payload.get("data", payload)
    return data.get("record") or data.get("new") or {}


class RealtimeHub:
    def __init__(self, client: Optional[AsyncClient] = None, queue_size: Optional[int] = None):
        self._client = client
        self._queue_size = queue_size or settings.realtime_queue_size
        self._channels: Dict[str, Any] = {}
        self._subscribers: Dict[str, Set[asyncio.Queue]] = {}
        self._lock = asyncio.Lock()

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            self._client = await SupabaseClient.get_async_client()
        return self._client

    def topics(self) -> Set[str]:
        return set(self._channels)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    async def _open_channel(self, topic: str, table: str, event: str, filter: Optional[str]):
        client = await self._get_client()
        channel = client.channel(topic)
        channel.on_postgres_changes(
            event,
            callback=partial(self._dispatch, topic),
            table=table,
            schema="public",
            filter=filter,
        )
        await channel.subscribe()
        logger.info(f"Subscribed realtime channel {topic} ({event} on {table}, filter={filter})")
        return channel

    def _dispatch(self, topic: str, payload: Dict[str, Any]) -> None:
        record = extract_record(payload)
        if not record:
            return
        for queue in list(self._subscribers.get(topic, ())):
            try:
                queue.put_nowait(record)
            except asyncio.QueueFull:
                logger.warning(f"Realtime subscriber queue full on {topic}, dropping event")

    @asynccontextmanager
    async def subscribe(
        self,
        topic: str,
        table: str,
        event: str = "INSERT",
        filter: Optional[str] = None,
    ) -> AsyncIterator[asyncio.Queue]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        async with self._lock:
            if topic not in self._channels:
                self._channels[topic] = await self._open_channel(topic, table, event, filter)
            self._subscribers.setdefault(topic, set()).add(queue)
        try:
            yield queue
        finally:
            async with self._lock:
                subscribers = self._subscribers.get(topic, set())
                subscribers.discard(queue)
                if not subscribers:
                    self._subscribers.pop(topic, None)
                    channel = self._channels.pop(topic, None)
                    if channel is not None:
                        await self._remove_channel(topic, channel)

    async def _remove_channel(self, topic: str, channel) -> None:
        try:
            client = await self._get_client()
            await client.remove_channel(channel)
            logger.info(f"Removed realtime channel {topic}")
        except Exception as e:
            logger.warning(f"Failed to remove realtime channel {topic}: {e}")

    async def close(self) -> None:
        async with self._lock:
            channels = list(self._channels.items())
            self._channels.clear()
            self._subscribers.clear()
        for topic, channel in channels:
            await self._remove_channel(topic, channel)


_hub: Optional[RealtimeHub] = None


def get_realtime_hub() -> RealtimeHub:
    global _hub
    if _hub is None:
        _hub = RealtimeHub()
    return _hub


async def close_realtime_hub() -> None:
    global _hub
    if _hub is not None:
        await _hub.close()
        _hub = None


async def forward_events(
    websocket: WebSocket,
    queue: asyncio.Queue,
    transform: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]],
) -> None:
    """Send transformed queue records to the socket until the client goes away.

    ``transform`` may query Supabase, so it runs in the threadpool. Records
    for which it returns None are skipped. Clients may send
    ``{"type": "ping"}`` and get ``{"type": "pong"}`` back.
    """

    async def _sender():
        while True:
            record = await queue.get()
            event = await run_in_threadpool(transform, record)
            if event is not None:
                await websocket.send_json(jsonable_encoder(event))

    async def _receiver():
        while True:
            text = await websocket.receive_text()
            try:
                message = json.loads(text)
            except ValueError:
                continue
            if isinstance(message, dict) and message.get("type") == "ping":
                await websocket.send_json({"type": "pong"})

    tasks = {asyncio.create_task(_sender()), asyncio.create_task(_receiver())}
    done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    for task in done:
        exc = task.exception()
        if exc is not None and not isinstance(exc, WebSocketDisconnect):
            raise exc
