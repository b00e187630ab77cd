"""Basic unit tests for nostr-dm package."""

from nostr_dm import (
    AsyncNostrDM,
    NostrDM,
    NostrDMError,
    ConfigError,
    KeyResolutionError,
    EncryptionError,
    DecryptionError,
    SigningError,
    PublishError,
    RelayError,
    RelayConnectError,
    RelayTimeoutError,
    DEFAULT_RELAYS,
    __version__,
)
from nostr_dm.models.outcome import RelayOutcome


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert NostrDM is not None
    assert AsyncNostrDM is not None
    assert DEFAULT_RELAYS == ("wss://relay.damus.io", "wss://relay.nostr.band", "wss://nos.lol")


def test_error_hierarchy():
    for cls in (ConfigError, KeyResolutionError, EncryptionError, DecryptionError, SigningError, PublishError, RelayError):
        assert issubclass(cls, NostrDMError)
    assert issubclass(RelayTimeoutError, RelayError)


def test_error_stages():
    assert ConfigError("x").stage == "config"
    assert KeyResolutionError("x").stage == "resolution"
    assert EncryptionError("x").stage == "crypto"
    assert DecryptionError("x").stage == "crypto"
    assert SigningError("x").stage == "signing"
    assert PublishError([]).stage == "publish"


def test_error_attributes():
    err = NostrDMError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    err = RelayConnectError("wss://r", "refused")
    assert err.code == "relay_connect_error"
    assert err.url == "wss://r"
    assert err.details == {"url": "wss://r"}


def test_key_error_redacts_input():
    secret = "nsec1" + "q" * 58
    err = KeyResolutionError(secret)
    assert err.value == secret
    assert secret not in str(err)
    assert secret[:12] in str(err)


def test_publish_error_lists_relays():
    outcomes = [
        RelayOutcome.failure("wss://a", RelayConnectError("wss://a", "refused")),
        RelayOutcome.failure("wss://b", RelayTimeoutError("wss://b")),
    ]
    err = PublishError(outcomes)
    assert str(err) == "failed to publish to all 2 relays (wss://a: refused; wss://b: deadline exceeded)"
    assert err.details == {"attempted": 2, "succeeded": 0}
