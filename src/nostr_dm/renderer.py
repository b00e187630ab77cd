"""
Message renderer — decrypts collected events into summaries.

A message that fails to decrypt stays in the output, marked as failed and
carrying a short preview of its ciphertext.
"""

import logging
from typing import Iterable

from nostr_dm.crypto import decrypt
from nostr_dm.errors import DecryptionError
from nostr_dm.keys import PrivateKey, PublicKey
from nostr_dm.models.event import NostrEvent
from nostr_dm.models.result import MessageSummary

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 50


def render_message(event: NostrEvent, my_private: PrivateKey) -> MessageSummary:
    sender = PublicKey(event.pubkey)
    summary = MessageSummary(
        id=event.id,
        sender=sender.bech32(),
        sender_hex=sender.hex,
        created_at=event.created_at,
    )
    try:
        summary.content = decrypt(event.content, my_private, sender)
    except DecryptionError as e:
        logger.info("Could not decrypt %s (%s): %s", event.id, e.reason, e)
        summary.decrypted = False
        summary.error = str(e)
        summary.ciphertext_preview = event.content[:PREVIEW_LENGTH]
    return summary


def render_messages(events: Iterable[NostrEvent], my_private: PrivateKey) -> list[MessageSummary]:
    return [render_message(event, my_private) for event in events]
