"""
nostr-dm error types.

Every fatal error carries the ``stage`` that produced it so callers can map
it to a distinct exit behaviour. Relay errors are per-relay and non-fatal:
the publisher and collector record them instead of raising.
"""

from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from nostr_dm.models.event import NostrEvent
    from nostr_dm.models.outcome import RelayOutcome


class NostrDMError(Exception):
    stage = "internal"

    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ConfigError(NostrDMError):
    stage = "config"

    def __init__(self, message: str):
        super().__init__("config_error", message)


class KeyResolutionError(NostrDMError):
    stage = "resolution"

    def __init__(self, value: str, reason: str = "unresolvable key"):
        super().__init__("key_resolution_error", f"{reason}: {_redact(value)!r}", {"input": _redact(value)})
        self.value = value


class EncryptionError(NostrDMError):
    stage = "crypto"

    def __init__(self, message: str):
        super().__init__("encryption_error", message)


class DecryptionError(NostrDMError):
    stage = "crypto"

    MALFORMED = "malformed"
    AUTHENTICATION = "authentication"

    def __init__(self, message: str, reason: str = MALFORMED):
        super().__init__("decryption_error", message, {"reason": reason})
        self.reason = reason

    @property
    def malformed(self) -> bool:
        """True when nothing was decrypted because the input was unusable."""
        return self.reason == self.MALFORMED


class SigningError(NostrDMError):
    stage = "signing"

    def __init__(self, message: str):
        super().__init__("signing_error", message)


class PublishError(NostrDMError):
    stage = "publish"

    def __init__(self, outcomes: "list[RelayOutcome]", event: "Optional[NostrEvent]" = None):
        failures = "; ".join(f"{o.url}: {o.error}" for o in outcomes) or "no relays configured"
        super().__init__(
            "publish_error",
            f"failed to publish to all {len(outcomes)} relays ({failures})",
            {"attempted": len(outcomes), "succeeded": 0},
        )
        self.outcomes = outcomes
        self.event = event


class RelayError(NostrDMError):
    stage = "relay"

    def __init__(self, url: str, message: str, code: str = "relay_error"):
        super().__init__(code, message, {"url": url})
        self.url = url


class RelayConnectError(RelayError):
    def __init__(self, url: str, message: str):
        super().__init__(url, message, "relay_connect_error")


class RelayPublishError(RelayError):
    def __init__(self, url: str, message: str):
        super().__init__(url, message, "relay_publish_error")


class RelayQueryError(RelayError):
    def __init__(self, url: str, message: str):
        super().__init__(url, message, "relay_query_error")


class RelayTimeoutError(RelayError):
    def __init__(self, url: str):
        super().__init__(url, "deadline exceeded", "relay_timeout")


def _redact(value: str) -> str:
    # Inputs may be secrets; only a prefix goes into messages.
    value = value.strip()
    if len(value) <= 12:
        return value
    return value[:12] + "..."
