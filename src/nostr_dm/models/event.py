"""
Nostr event and subscription filter models — NIP-01.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

HEX64 = r"^[0-9a-f]{64}$"


class NostrEvent(BaseModel):
    """Signed event. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(pattern=HEX64)
    pubkey: str = Field(pattern=HEX64)
    created_at: int
    kind: int
    tags: list[list[str]] = Field(default_factory=list)
    content: str = ""
    sig: str = Field(pattern=r"^[0-9a-f]{128}$")

    @property
    def recipients(self) -> list[str]:
        """Values of the event's ``p`` tags."""
        return [tag[1] for tag in self.tags if len(tag) >= 2 and tag[0] == "p"]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump()


class Filter(BaseModel):
    """REQ filter. ``p`` serializes as ``#p``."""

    model_config = ConfigDict(populate_by_name=True)

    ids: Optional[list[str]] = None
    authors: Optional[list[str]] = None
    kinds: Optional[list[int]] = None
    p: Optional[list[str]] = Field(default=None, alias="#p")
    since: Optional[int] = None
    until: Optional[int] = None
    limit: Optional[int] = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
