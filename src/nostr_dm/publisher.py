"""
Relay fan-out — publish one signed event to every configured relay.

Per relay: Connecting -> Publishing -> Succeeded | Failed, single shot, no
retry. Relays are attempted concurrently under the shared deadline; one
relay failing or timing out never affects the others. The call succeeds if
at least one relay accepted the event.
"""

import asyncio
import logging
from typing import Sequence

from nostr_dm.deadline import Deadline
from nostr_dm.errors import PublishError, RelayError, RelayTimeoutError
from nostr_dm.models.event import NostrEvent
from nostr_dm.models.outcome import RelayOutcome
from nostr_dm.transport.relay import Transport, open_relay

logger = logging.getLogger(__name__)


async def _publish_one(transport: Transport, url: str, event: NostrEvent) -> None:
    async with open_relay(transport, url) as conn:
        await conn.publish(event)


async def _attempt(transport: Transport, url: str, event: NostrEvent, deadline: Deadline) -> RelayOutcome:
    try:
        await asyncio.wait_for(_publish_one(transport, url, event), timeout=deadline.remaining())
    except asyncio.TimeoutError:
        logger.warning("%s: publish timed out", url)
        return RelayOutcome.failure(url, RelayTimeoutError(url))
    except RelayError as e:
        logger.warning("%s: publish failed: %s", url, e)
        return RelayOutcome.failure(url, e)
    logger.debug("%s: published %s", url, event.id)
    return RelayOutcome.success(url)


async def publish_event(
    event: NostrEvent,
    relays: Sequence[str],
    *,
    transport: Transport,
    deadline: Deadline,
) -> list[RelayOutcome]:
    """Publish ``event`` to all ``relays``.

    Returns one outcome per relay, in the order given. Raises PublishError,
    carrying every outcome, when no relay accepted the event.
    """
    outcomes = list(await asyncio.gather(
        *(_attempt(transport, url, event, deadline) for url in relays)
    ))
    succeeded = sum(1 for o in outcomes if o.succeeded)
    logger.info("Published %s to %d/%d relays", event.id, succeeded, len(outcomes))
    if not succeeded:
        raise PublishError(outcomes, event)
    return outcomes
