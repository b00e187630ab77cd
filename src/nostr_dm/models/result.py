"""
Results handed back to callers of send() and read().
"""

from typing import Optional
from pydantic import BaseModel, Field

from nostr_dm.errors import PublishError
from nostr_dm.keys import PublicKey
from nostr_dm.models.event import NostrEvent
from nostr_dm.models.outcome import RelayOutcome


class SendResult(BaseModel):
    success: bool
    message_id: str
    encrypted_to: str  # npub of the recipient
    recipient_hex: str
    event: NostrEvent
    relays: list[RelayOutcome]
    attempted: int
    succeeded: int
    error: Optional[str] = None

    @classmethod
    def from_outcomes(
        cls, event: NostrEvent, encrypted_to: str, outcomes: list[RelayOutcome],
    ) -> "SendResult":
        succeeded = sum(1 for o in outcomes if o.succeeded)
        return cls(
            success=succeeded > 0,
            message_id=event.id,
            encrypted_to=encrypted_to,
            recipient_hex=event.recipients[0],
            event=event,
            relays=outcomes,
            attempted=len(outcomes),
            succeeded=succeeded,
        )

    @classmethod
    def from_error(cls, error: PublishError) -> "SendResult":
        """Result of a send that no relay accepted."""
        event = error.event
        result = cls.from_outcomes(event, PublicKey(event.recipients[0]).bech32(), error.outcomes)
        result.error = str(error)
        return result


class MessageSummary(BaseModel):
    id: str
    sender: str  # npub
    sender_hex: str
    created_at: int
    content: Optional[str] = None
    decrypted: bool = True
    error: Optional[str] = None
    ciphertext_preview: Optional[str] = None


class CollectResult(BaseModel):
    events: list[NostrEvent] = Field(default_factory=list)
    outcomes: list[RelayOutcome] = Field(default_factory=list)

    @property
    def reachable(self) -> bool:
        return any(o.succeeded for o in self.outcomes)


class ReadResult(BaseModel):
    messages: list[MessageSummary]
    relays: list[RelayOutcome]
    reachable: bool
