"""
Relay websocket connection — one connection per publish or query.

Connections are never pooled: open_relay() opens, hands out, and closes the
connection on every exit path, including cancellation on deadline expiry.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator, Optional, Protocol

import aiohttp

from nostr_dm.errors import RelayConnectError, RelayError, RelayPublishError, RelayQueryError
from nostr_dm.models.event import Filter, NostrEvent
from nostr_dm.transport.messages import (
    RelayMessage,
    build_close_message,
    build_event_message,
    build_req_message,
    new_subscription_id,
    parse_relay_message,
)

logger = logging.getLogger(__name__)

USER_AGENT = "nostr-dm/0.1.0"


class Connection(Protocol):
    url: str

    async def publish(self, event: NostrEvent) -> None: ...

    def query(self, filter: Filter) -> AsyncIterator[NostrEvent]: ...

    async def close(self) -> None: ...


class Transport(Protocol):
    async def connect(self, url: str) -> Connection: ...


class RelayConnection:
    def __init__(self, url: str, ws: Any, session: Optional[aiohttp.ClientSession] = None):
        self.url = url
        self._ws = ws
        self._session = session
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed or self._ws.closed

    async def _send(self, text: str, error: type[RelayError]) -> None:
        try:
            await self._ws.send_str(text)
        except (aiohttp.ClientError, ConnectionError, RuntimeError) as e:
            raise error(self.url, f"send failed: {e}")

    async def _receive(self) -> Optional[RelayMessage]:
        """Next parsed message; None once the socket is closed."""
        while True:
            msg = await self._ws.receive()
            if msg.type == aiohttp.WSMsgType.TEXT:
                parsed = parse_relay_message(msg.data)
                if parsed is None:
                    logger.debug("%s: ignoring unparseable message", self.url)
                    continue
                if parsed.type == "NOTICE":
                    logger.info("%s: NOTICE %s", self.url, parsed.message)
                    continue
                return parsed
            if msg.type in (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING,
                            aiohttp.WSMsgType.CLOSED, aiohttp.WSMsgType.ERROR):
                return None

    async def publish(self, event: NostrEvent) -> None:
        """Send the event and wait for the relay's OK for it."""
        await self._send(build_event_message(event), RelayPublishError)
        while True:
            msg = await self._receive()
            if msg is None:
                raise RelayPublishError(self.url, "connection closed before OK")
            if msg.type != "OK" or msg.event_id != event.id:
                continue
            if not msg.accepted:
                raise RelayPublishError(self.url, msg.message or "event rejected")
            logger.debug("%s: accepted %s", self.url, event.id)
            return

    async def query(self, filter: Filter) -> AsyncGenerator[NostrEvent, None]:
        """Yield stored events matching ``filter`` until EOSE."""
        sub_id = new_subscription_id()
        await self._send(build_req_message(sub_id, filter), RelayQueryError)
        try:
            while True:
                msg = await self._receive()
                if msg is None:
                    raise RelayQueryError(self.url, "connection closed before EOSE")
                if msg.subscription_id != sub_id:
                    continue
                if msg.type == "EVENT" and msg.event is not None:
                    yield msg.event
                elif msg.type == "EOSE":
                    return
                elif msg.type == "CLOSED":
                    raise RelayQueryError(self.url, msg.message or "subscription closed by relay")
        finally:
            if not self.closed:
                try:
                    await self._ws.send_str(build_close_message(sub_id))
                except (aiohttp.ClientError, ConnectionError, RuntimeError) as e:
                    logger.debug("%s: CLOSE %s failed: %s", self.url, sub_id, e)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._ws.close()
        finally:
            if self._session is not None:
                await self._session.close()


class WebSocketTransport:
    """Opens aiohttp websocket connections to relays."""

    async def connect(self, url: str) -> RelayConnection:
        session = aiohttp.ClientSession(headers={"User-Agent": USER_AGENT})
        try:
            ws = await session.ws_connect(url)
        except (aiohttp.ClientError, OSError, ValueError) as e:
            await session.close()
            raise RelayConnectError(url, f"connect failed: {e}")
        except BaseException:
            await session.close()
            raise
        logger.debug("%s: connected", url)
        return RelayConnection(url, ws, session)


@asynccontextmanager
async def open_relay(transport: Transport, url: str) -> AsyncIterator[Connection]:
    conn = await transport.connect(url)
    try:
        yield conn
    finally:
        await conn.close()
