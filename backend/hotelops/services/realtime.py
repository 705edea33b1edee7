"""
Realtime Subscriptions
Listens to row changes on backend tables over the Realtime websocket (Phoenix
channel protocol) and drops the affected cached reads.

Each table gets its own asyncio task. A dropped connection is retried after a
fixed delay; after a reconnect the table's cached reads are invalidated.
"""
from typing import Any, Callable, Dict, List, Optional
import asyncio
import itertools
import json
import logging

import websockets
from pydantic import ValidationError
from websockets.exceptions import WebSocketException

from hotelops.config import settings
from hotelops.schemas.realtime import ChangeEvent

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "1.0.0"


def socket_url(base_url: str, api_key: str) -> str:
    """Realtime websocket endpoint for a project URL (http -> ws, https -> wss)."""
    if base_url.startswith("https://"):
        base = "wss://" + base_url[len("https://"):]
    elif base_url.startswith("http://"):
        base = "ws://" + base_url[len("http://"):]
    else:
        base = base_url
    return f"{base.rstrip('/')}/realtime/v1/websocket?apikey={api_key}&vsn={PROTOCOL_VERSION}"


class TableSubscription:
    """postgres_changes subscription for one table in the public schema."""

    def __init__(
        self,
        table: str,
        url: str,
        api_key: str,
        on_change: Callable[[ChangeEvent], Any],
        on_reconnect: Optional[Callable[[str], Any]] = None,
        heartbeat_seconds: float = 30.0,
        reconnect_seconds: float = 5.0,
        connect: Callable = websockets.connect,
        access_token: Optional[str] = None,
    ):
        self.table = table
        self.url = url
        self.api_key = api_key
        self.access_token = access_token or api_key
        self.on_change = on_change
        self.on_reconnect = on_reconnect
        self.heartbeat_seconds = heartbeat_seconds
        self.reconnect_seconds = reconnect_seconds
        self._connect = connect
        self._refs = itertools.count(1)
        self._task: Optional[asyncio.Task] = None

    @property
    def topic(self) -> str:
        return f"realtime:public:{self.table}"

    def _message(self, topic: str, event: str, payload: Dict[str, Any]) -> str:
        return json.dumps({"topic": topic, "event": event, "payload": payload, "ref": str(next(self._refs))})

    def join_message(self) -> str:
        return self._message(self.topic, "phx_join", {
            "config": {
                "broadcast": {"self": False},
                "presence": {"key": ""},
                "postgres_changes": [{"event": "*", "schema": "public", "table": self.table}],
            },
            "access_token": self.access_token,
        })

    def heartbeat_message(self) -> str:
        return self._message("phoenix", "heartbeat", {})

    def _handle_message(self, raw: str) -> Optional[ChangeEvent]:
        """
        Dispatch one frame. Returns the change event if the frame carried one.

        A malformed frame, or a failing ``on_change`` callback, is logged and
        dropped; the subscription keeps reading.
        """
        try:
            message = json.loads(raw)
        except ValueError:
            logger.warning("Ignoring non-JSON realtime frame on %s", self.topic)
            return None
        if not isinstance(message, dict):
            logger.warning("Ignoring non-object realtime frame on %s", self.topic)
            return None

        event = message.get("event")
        payload = message.get("payload")
        if not isinstance(payload, dict):
            payload = {}

        if event == "postgres_changes":
            data = payload.get("data")
            if not isinstance(data, dict):
                logger.warning("Ignoring change frame without data on %s", self.topic)
                return None
            try:
                change = ChangeEvent(
                    table=data.get("table") or self.table,
                    type=data.get("type", ""),
                    record=data.get("record"),
                    old_record=data.get("old_record"),
                    commit_timestamp=data.get("commit_timestamp"),
                )
            except ValidationError as e:
                logger.warning("Ignoring malformed change on %s: %s", self.topic, e)
                return None

            try:
                self.on_change(change)
            except Exception as e:
                logger.error("Change handler for %s failed: %s", self.topic, e)
            return change

        if event == "phx_reply" and payload.get("status") not in (None, "ok"):
            logger.warning("Realtime join for %s rejected: %s", self.topic, payload.get("response"))
        elif event in ("phx_error", "system") and payload.get("status") == "error":
            logger.warning("Realtime channel error on %s: %s", self.topic, payload)
        return None

    async def _heartbeat(self, ws) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_seconds)
            await ws.send(self.heartbeat_message())

    async def run(self) -> None:
        connected_before = False
        while True:
            try:
                async with self._connect(self.url) as ws:
                    await ws.send(self.join_message())
                    if connected_before:
                        logger.info("Realtime reconnected for %s, refreshing cached reads", self.table)
                        if self.on_reconnect:
                            try:
                                self.on_reconnect(self.table)
                            except Exception as e:
                                logger.error("Reconnect handler for %s failed: %s", self.table, e)
                    else:
                        logger.info("Realtime subscribed to %s", self.table)
                    connected_before = True

                    heartbeat = asyncio.create_task(self._heartbeat(ws))
                    try:
                        async for raw in ws:
                            self._handle_message(raw)
                    finally:
                        heartbeat.cancel()
                logger.warning("Realtime connection for %s closed", self.table)
            except (WebSocketException, OSError, asyncio.TimeoutError) as exc:
                logger.warning(f"Realtime connection for {self.table} lost: {exc}")

            await asyncio.sleep(self.reconnect_seconds)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error("Realtime subscription for %s had failed: %s", self.table, e)


class RealtimeManager:
    """Owns one subscription per configured table for the application's lifetime."""

    def __init__(self, subscriptions: List[TableSubscription]):
        self.subscriptions = subscriptions

    @classmethod
    def for_cache(cls, cache, tables: Optional[List[str]] = None, connect: Callable = websockets.connect):
        """Subscriptions that invalidate ``cache`` on every change and on reconnect."""
        url = socket_url(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)
        tables = settings.REALTIME_TABLES if tables is None else tables
        if settings.realtime_access_token == settings.SUPABASE_ANON_KEY:
            logger.warning("Realtime joins with the anon key; row-level security may hide every change")
        return cls([
            TableSubscription(
                table,
                url,
                settings.SUPABASE_ANON_KEY,
                access_token=settings.realtime_access_token,
                on_change=lambda event: cache.invalidate_table(event.table),
                on_reconnect=cache.invalidate_table,
                heartbeat_seconds=settings.REALTIME_HEARTBEAT_SECONDS,
                reconnect_seconds=settings.REALTIME_RECONNECT_SECONDS,
                connect=connect,
            )
            for table in tables
        ])

    def start(self) -> None:
        for subscription in self.subscriptions:
            subscription.start()

    async def stop(self) -> None:
        for subscription in self.subscriptions:
            await subscription.stop()
