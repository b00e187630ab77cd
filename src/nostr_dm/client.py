"""
AsyncNostrDM / NostrDM — main clients.

send: resolve keys -> encrypt -> build + sign -> fan out to relays
read: resolve key -> fan in from relays -> decrypt -> summaries

Nothing is persisted between calls; keys and relays are resolved on every
invocation.
"""

import asyncio
import logging
from typing import Any, Iterable, Optional

from nostr_dm.collector import collect_events
from nostr_dm.crypto import encrypt
from nostr_dm.deadline import Deadline
from nostr_dm.errors import ConfigError
from nostr_dm.events import build_dm_event
from nostr_dm.keys import resolve_private, resolve_public
from nostr_dm.models.options import DEFAULT_RELAYS, DEFAULT_TIMEOUT_S, ReadOptions, SendOptions
from nostr_dm.models.result import ReadResult, SendResult
from nostr_dm.publisher import publish_event
from nostr_dm.renderer import render_messages
from nostr_dm.transport.relay import Transport, WebSocketTransport

logger = logging.getLogger(__name__)


def normalize_relays(relays: Iterable[str]) -> list[str]:
    """Strip, drop empties and duplicates, keep first position."""
    result: list[str] = []
    for url in relays:
        url = url.strip()
        if url and url not in result:
            result.append(url)
    if not result:
        raise ConfigError("no relays configured")
    return result


class AsyncNostrDM:
    """Async direct-message client (primary)."""

    def __init__(
        self,
        relays: Optional[Iterable[str]] = None,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: Optional[Transport] = None,
    ):
        self.relays = normalize_relays(relays if relays is not None else DEFAULT_RELAYS)
        if timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {timeout}")
        self.timeout = timeout
        self.transport: Transport = transport or WebSocketTransport()

    def _relays_for(self, override: Optional[list[str]]) -> list[str]:
        return normalize_relays(override) if override is not None else self.relays

    async def send(self, options: SendOptions) -> SendResult:
        """Encrypt, sign and publish one direct message.

        Raises KeyResolutionError, EncryptionError or SigningError before any
        network call, and PublishError if no relay accepted the event.
        """
        deadline = Deadline(options.timeout or self.timeout)
        relays = self._relays_for(options.relays)

        my_private = resolve_private(options.key)
        recipient = resolve_public(options.recipient)
        logger.debug("Sending from %s to %s via %s", my_private.public_key().hex, recipient.hex, relays)

        ciphertext = encrypt(options.message, my_private, recipient)
        event = build_dm_event(my_private, recipient, ciphertext)
        logger.debug("Built event %s", event.id)

        outcomes = await publish_event(event, relays, transport=self.transport, deadline=deadline)
        return SendResult.from_outcomes(event, recipient.bech32(), outcomes)

    async def read(self, options: ReadOptions) -> ReadResult:
        """Fetch and decrypt up to ``options.limit`` messages sent to us.

        Relay failures never raise; ``ReadResult.reachable`` is False when
        no relay could be queried at all.
        """
        deadline = Deadline(options.timeout or self.timeout)
        relays = self._relays_for(options.relays)

        my_private = resolve_private(options.key)
        me = my_private.public_key()
        logger.debug("Reading messages for %s from %s", me.hex, relays)

        collected = await collect_events(me, relays, options.limit, transport=self.transport, deadline=deadline)
        if not collected.reachable:
            logger.warning("No relay could be reached")
        return ReadResult(
            messages=render_messages(collected.events, my_private),
            relays=collected.outcomes,
            reachable=collected.reachable,
        )


class NostrDM:
    """Sync wrapper around AsyncNostrDM. Runs the event loop internally."""

    def __init__(self, **kwargs: Any):
        self._async = AsyncNostrDM(**kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def relays(self) -> list[str]:
        return self._async.relays

    def send(self, options: SendOptions) -> SendResult:
        return self._run(self._async.send(options))

    def read(self, options: ReadOptions) -> ReadResult:
        return self._run(self._async.read(options))

    def close(self) -> None:
        self._loop.close()
