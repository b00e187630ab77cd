"""
Relay fan-in — gather encrypted DMs addressed to one public key.

Every relay is queried concurrently into its own buffer. A single merge loop
consumes the buffers in configured relay order: first-seen event id wins,
later copies are dropped, and merging stops at ``limit`` events. Relays
still running once the limit is reached are cancelled, which closes their
connections, and are left out of the outcomes; relays that had already
finished are reported either way. Relay failures are logged and reported,
never raised.
"""

import asyncio
import logging
from contextlib import aclosing
from typing import Sequence

from nostr_dm.deadline import Deadline
from nostr_dm.errors import RelayError, RelayTimeoutError
from nostr_dm.events import KIND_ENCRYPTED_DM
from nostr_dm.keys import PublicKey
from nostr_dm.models.event import Filter, NostrEvent
from nostr_dm.models.outcome import RelayOutcome
from nostr_dm.models.result import CollectResult
from nostr_dm.transport.relay import Transport, open_relay

logger = logging.getLogger(__name__)


def dm_filter(recipient: PublicKey, limit: int) -> Filter:
    return Filter(kinds=[KIND_ENCRYPTED_DM], p=[recipient.hex], limit=limit)


async def _fetch(transport: Transport, url: str, filter: Filter, limit: int) -> list[NostrEvent]:
    events: list[NostrEvent] = []
    async with open_relay(transport, url) as conn:
        async with aclosing(conn.query(filter)) as stream:
            async for event in stream:
                events.append(event)
                if len(events) >= limit:
                    break
    return events


def _settle(url: str, task: "asyncio.Task[list[NostrEvent]]") -> tuple[RelayOutcome, list[NostrEvent]]:
    """Outcome and events of a finished fetch task."""
    try:
        events = task.result()
    except asyncio.TimeoutError:
        logger.warning("%s: query timed out", url)
        return RelayOutcome.failure(url, RelayTimeoutError(url)), []
    except RelayError as e:
        logger.warning("%s: query failed: %s", url, e)
        return RelayOutcome.failure(url, e), []
    return RelayOutcome.success(url, events=len(events)), events


async def collect_events(
    recipient: PublicKey,
    relays: Sequence[str],
    limit: int,
    *,
    transport: Transport,
    deadline: Deadline,
) -> CollectResult:
    filter = dm_filter(recipient, limit)
    tasks = [
        asyncio.create_task(asyncio.wait_for(_fetch(transport, url, filter, limit), timeout=deadline.remaining()))
        for url in relays
    ]
    pending = list(zip(relays, tasks))

    seen: set[str] = set()
    merged: list[NostrEvent] = []
    outcomes: list[RelayOutcome] = []
    try:
        while pending and len(merged) < limit:
            url, task = pending.pop(0)
            await asyncio.wait([task])
            outcome, events = _settle(url, task)
            outcomes.append(outcome)
            for event in events:
                if event.id in seen:
                    continue
                seen.add(event.id)
                merged.append(event)
                if len(merged) >= limit:
                    break

        # Relays that already finished are still reported; the rest are cut off.
        for url, task in pending:
            if task.done():
                outcomes.append(_settle(url, task)[0])
    finally:
        for t in tasks:
            if not t.done():
                t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    logger.info("Collected %d events from %d/%d relays",
                len(merged), sum(1 for o in outcomes if o.succeeded), len(relays))
    return CollectResult(events=merged, outcomes=outcomes)
