"""
nostr-dm — encrypted Nostr direct messages for Python.

Send and read NIP-44 encrypted direct messages across several relays.
"""

from nostr_dm.client import NostrDM, AsyncNostrDM
from nostr_dm.keys import PrivateKey, PublicKey, resolve_private, resolve_public
from nostr_dm.errors import (
    NostrDMError,
    ConfigError,
    KeyResolutionError,
    EncryptionError,
    DecryptionError,
    SigningError,
    PublishError,
    RelayError,
    RelayConnectError,
    RelayPublishError,
    RelayQueryError,
    RelayTimeoutError,
)
from nostr_dm.models.options import DEFAULT_RELAYS, SendOptions, ReadOptions
from nostr_dm.models.result import SendResult, ReadResult, MessageSummary

__version__ = "0.1.0"
__all__ = [
    "NostrDM",
    "AsyncNostrDM",
    "PrivateKey",
    "PublicKey",
    "resolve_private",
    "resolve_public",
    "NostrDMError",
    "ConfigError",
    "KeyResolutionError",
    "EncryptionError",
    "DecryptionError",
    "SigningError",
    "PublishError",
    "RelayError",
    "RelayConnectError",
    "RelayPublishError",
    "RelayQueryError",
    "RelayTimeoutError",
    "DEFAULT_RELAYS",
    "SendOptions",
    "ReadOptions",
    "SendResult",
    "ReadResult",
    "MessageSummary",
]
