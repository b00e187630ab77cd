"""Collecting direct messages from several relays."""

import pytest

from nostr_dm.collector import collect_events
from nostr_dm.deadline import Deadline
from tests.fakes import FakeRelay, FakeTransport, make_dm


def dms(sender, recipient, count, start=0):
    return [make_dm(sender, recipient, f"message {i}", created_at=1_700_000_000 + i) for i in range(start, start + count)]


@pytest.mark.asyncio
async def test_overlapping_relays_are_deduplicated(alice, bob):
    e1, e2, e3 = dms(alice, bob, 3)
    transport = FakeTransport(FakeRelay("wss://a", [e1, e2]), FakeRelay("wss://b", [e2, e3]))

    result = await collect_events(bob.public_key(), transport.urls, 10, transport=transport, deadline=Deadline(5))

    assert [e.id for e in result.events] == [e1.id, e2.id, e3.id]
    assert [o.events for o in result.outcomes] == [2, 2]


@pytest.mark.asyncio
async def test_truncates_to_limit_in_accumulation_order(alice, bob):
    events = dms(alice, bob, 8)
    transport = FakeTransport(FakeRelay("wss://a", events[:4]), FakeRelay("wss://b", events[4:]))

    result = await collect_events(bob.public_key(), transport.urls, 5, transport=transport, deadline=Deadline(5))

    assert result.events == events[:5]


@pytest.mark.asyncio
async def test_stops_once_limit_is_reached(alice, bob):
    relays = [
        FakeRelay("wss://a", dms(alice, bob, 3)),
        FakeRelay("wss://slow", dms(alice, bob, 3, start=3), delay=10),
        FakeRelay("wss://down", connect_error="refused"),
    ]
    transport = FakeTransport(*relays)

    result = await collect_events(bob.public_key(), transport.urls, 3, transport=transport, deadline=Deadline(5))

    assert len(result.events) == 3
    # the slow relay is cut off unreported; the finished failure is still reported
    assert [(o.url, o.error_code) for o in result.outcomes] == [("wss://a", None), ("wss://down", "relay_connect_error")]
    for relay in relays:
        assert relay.connects == relay.closes


@pytest.mark.asyncio
async def test_query_filter(alice, bob):
    relay = FakeRelay("wss://a")
    transport = FakeTransport(relay)
    await collect_events(bob.public_key(), transport.urls, 7, transport=transport, deadline=Deadline(5))

    assert relay.filters[0].to_wire() == {"kinds": [4], "#p": [bob.public_key().hex], "limit": 7}


@pytest.mark.asyncio
async def test_failing_relays_are_skipped(alice, bob):
    good = dms(alice, bob, 2)
    transport = FakeTransport(
        FakeRelay("wss://down", connect_error="refused"),
        FakeRelay("wss://broken", dms(alice, bob, 1, start=9), query_error="stream reset"),
        FakeRelay("wss://good", good),
    )

    result = await collect_events(bob.public_key(), transport.urls, 10, transport=transport, deadline=Deadline(5))

    assert result.events == good
    assert result.reachable
    assert [o.error_code for o in result.outcomes] == ["relay_connect_error", "relay_query_error", None]


@pytest.mark.asyncio
async def test_every_relay_failing_is_empty_but_unreachable(bob):
    transport = FakeTransport(FakeRelay("wss://a", connect_error="refused"), FakeRelay("wss://b", connect_error="refused"))

    result = await collect_events(bob.public_key(), transport.urls, 10, transport=transport, deadline=Deadline(5))

    assert result.events == []
    assert not result.reachable
    assert len(result.outcomes) == 2


@pytest.mark.asyncio
async def test_reachable_but_empty(bob):
    transport = FakeTransport(FakeRelay("wss://a"))

    result = await collect_events(bob.public_key(), transport.urls, 10, transport=transport, deadline=Deadline(5))

    assert result.events == []
    assert result.reachable


@pytest.mark.asyncio
async def test_slow_relay_times_out(alice, bob):
    fast = dms(alice, bob, 2)
    slow = FakeRelay("wss://slow", dms(alice, bob, 2, start=5), delay=10)
    transport = FakeTransport(slow, FakeRelay("wss://fast", fast))

    result = await collect_events(bob.public_key(), transport.urls, 10, transport=transport, deadline=Deadline(0.1))

    assert result.events == fast
    assert result.outcomes[0].error_code == "relay_timeout"
    assert slow.connects == slow.closes == 1
