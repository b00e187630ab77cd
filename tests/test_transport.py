"""Relay wire messages and the websocket connection."""

import asyncio
import json
from types import SimpleNamespace

import aiohttp
import pytest

from nostr_dm.errors import RelayPublishError, RelayQueryError
from nostr_dm.models.event import Filter
from nostr_dm.transport.messages import (
    build_close_message,
    build_event_message,
    build_req_message,
    parse_relay_message,
)
from nostr_dm.transport.relay import RelayConnection, open_relay
from tests.fakes import make_dm


def text(*payload):
    return SimpleNamespace(type=aiohttp.WSMsgType.TEXT, data=json.dumps(list(payload)))


CLOSED = SimpleNamespace(type=aiohttp.WSMsgType.CLOSED, data=None)


class FakeWebSocket:
    """Replies to each client frame with whatever ``responder`` returns."""

    def __init__(self, responder):
        self.sent: list = []
        self.closed = False
        self._responder = responder
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send_str(self, data: str) -> None:
        frame = json.loads(data)
        self.sent.append(frame)
        for reply in self._responder(frame):
            self._inbox.put_nowait(reply)

    async def receive(self):
        return await self._inbox.get()

    async def close(self) -> None:
        self.closed = True


class TestMessages:
    def test_event_message(self, alice, bob):
        event = make_dm(alice, bob, "hi")
        assert json.loads(build_event_message(event)) == ["EVENT", event.model_dump()]

    def test_req_message_uses_tag_filter_name(self):
        f = Filter(kinds=[4], p=["ab" * 32], limit=5)
        assert json.loads(build_req_message("sub1", f)) == ["REQ", "sub1", {"kinds": [4], "#p": ["ab" * 32], "limit": 5}]

    def test_close_message(self):
        assert json.loads(build_close_message("sub1")) == ["CLOSE", "sub1"]

    def test_parse_ok(self):
        msg = parse_relay_message(json.dumps(["OK", "ab" * 32, False, "blocked: spam"]))
        assert msg.type == "OK"
        assert msg.accepted is False
        assert msg.message == "blocked: spam"

    def test_parse_event(self, alice, bob):
        event = make_dm(alice, bob, "hi")
        msg = parse_relay_message(json.dumps(["EVENT", "sub1", event.model_dump()]))
        assert msg.subscription_id == "sub1"
        assert msg.event == event

    def test_parse_eose_closed_notice(self):
        assert parse_relay_message('["EOSE","sub1"]').type == "EOSE"
        closed = parse_relay_message('["CLOSED","sub1","error: shutting down"]')
        assert (closed.type, closed.message) == ("CLOSED", "error: shutting down")
        assert parse_relay_message('["NOTICE","hello"]').message == "hello"

    @pytest.mark.parametrize("raw", ["", "not json", "{}", "[]", "[1,2]", '["AUTH","challenge"]',
                                     '["EVENT","sub1",{"id":"nope"}]', '["OK"]'])
    def test_parse_invalid(self, raw):
        assert parse_relay_message(raw) is None


class TestRelayConnection:
    @pytest.mark.asyncio
    async def test_publish_waits_for_matching_ok(self, alice, bob):
        event = make_dm(alice, bob, "hi")

        def responder(frame):
            if frame[0] == "EVENT":
                return [text("NOTICE", "welcome"), text("OK", "cd" * 32, True, ""), text("OK", event.id, True, "")]
            return []

        ws = FakeWebSocket(responder)
        await RelayConnection("wss://r", ws).publish(event)
        assert ws.sent == [["EVENT", event.model_dump()]]

    @pytest.mark.asyncio
    async def test_publish_rejected(self, alice, bob):
        event = make_dm(alice, bob, "hi")
        ws = FakeWebSocket(lambda frame: [text("OK", event.id, False, "blocked: not allowed")])
        with pytest.raises(RelayPublishError, match="blocked: not allowed") as exc:
            await RelayConnection("wss://r", ws).publish(event)
        assert exc.value.url == "wss://r"

    @pytest.mark.asyncio
    async def test_publish_connection_dropped(self, alice, bob):
        ws = FakeWebSocket(lambda frame: [CLOSED])
        with pytest.raises(RelayPublishError, match="closed before OK"):
            await RelayConnection("wss://r", ws).publish(make_dm(alice, bob, "hi"))

    @pytest.mark.asyncio
    async def test_query_yields_until_eose_then_closes_subscription(self, alice, bob, carol):
        mine = [make_dm(alice, bob, "one"), make_dm(carol, bob, "two")]
        other = make_dm(alice, carol, "not ours")

        def responder(frame):
            if frame[0] != "REQ":
                return []
            sub = frame[1]
            return [
                text("EVENT", sub, mine[0].model_dump()),
                text("EVENT", "someone-else", other.model_dump()),
                text("EVENT", sub, mine[1].model_dump()),
                text("EOSE", sub),
            ]

        ws = FakeWebSocket(responder)
        conn = RelayConnection("wss://r", ws)
        received = [e async for e in conn.query(Filter(kinds=[4], p=[bob.public_key().hex], limit=10))]
        assert received == mine
        sub = ws.sent[0][1]
        assert ws.sent[-1] == ["CLOSE", sub]

    @pytest.mark.asyncio
    async def test_query_closed_by_relay(self):
        ws = FakeWebSocket(lambda frame: [text("CLOSED", frame[1], "auth-required: login")] if frame[0] == "REQ" else [])
        with pytest.raises(RelayQueryError, match="auth-required"):
            async for _ in RelayConnection("wss://r", ws).query(Filter(kinds=[4])):
                pass

    @pytest.mark.asyncio
    async def test_query_connection_dropped(self):
        ws = FakeWebSocket(lambda frame: [CLOSED] if frame[0] == "REQ" else [])
        with pytest.raises(RelayQueryError, match="before EOSE"):
            async for _ in RelayConnection("wss://r", ws).query(Filter(kinds=[4])):
                pass

    @pytest.mark.asyncio
    async def test_open_relay_closes_on_error(self):
        ws = FakeWebSocket(lambda frame: [])
        conn = RelayConnection("wss://r", ws)

        class Transport:
            async def connect(self, url):
                return conn

        with pytest.raises(RuntimeError):
            async with open_relay(Transport(), "wss://r"):
                raise RuntimeError("boom")
        assert ws.closed
        assert conn.closed
        await conn.close()  # idempotent
