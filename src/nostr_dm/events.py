"""
Event builder — assembles and signs encrypted direct-message events.
"""

import hashlib
import json
import time
from typing import Any, Optional

import coincurve

from nostr_dm.errors import SigningError
from nostr_dm.keys import PrivateKey, PublicKey
from nostr_dm.models.event import NostrEvent

KIND_ENCRYPTED_DM = 4


def serialize_event(pubkey: str, created_at: int, kind: int, tags: list[list[str]], content: str) -> bytes:
    """NIP-01 canonical serialization used for the event id."""
    data: list[Any] = [0, pubkey, created_at, kind, tags, content]
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def compute_event_id(pubkey: str, created_at: int, kind: int, tags: list[list[str]], content: str) -> str:
    return hashlib.sha256(serialize_event(pubkey, created_at, kind, tags, content)).hexdigest()


def sign_event_id(event_id: str, private_key: PrivateKey) -> str:
    """BIP-340 Schnorr signature over the 32-byte event id."""
    try:
        signer = coincurve.PrivateKey(private_key.to_bytes())
        return signer.sign_schnorr(bytes.fromhex(event_id)).hex()
    except ValueError as e:
        raise SigningError(f"failed to sign event {event_id}: {e}")


def build_dm_event(
    my_private: PrivateKey,
    recipient: PublicKey,
    ciphertext: str,
    created_at: Optional[int] = None,
) -> NostrEvent:
    """Build a signed kind-4 event addressed to ``recipient``."""
    # Captured once: the id and the transmitted field must agree.
    created_at = int(time.time()) if created_at is None else created_at
    tags = [["p", recipient.hex]]
    try:
        pubkey = my_private.public_key().hex
    except ValueError as e:
        raise SigningError(f"cannot derive signer key: {e}")

    event_id = compute_event_id(pubkey, created_at, KIND_ENCRYPTED_DM, tags, ciphertext)
    sig = sign_event_id(event_id, my_private)
    return NostrEvent(
        id=event_id,
        pubkey=pubkey,
        created_at=created_at,
        kind=KIND_ENCRYPTED_DM,
        tags=tags,
        content=ciphertext,
        sig=sig,
    )
