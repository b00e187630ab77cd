"""
Send/read options and engine defaults.
"""

from typing import Optional
from pydantic import BaseModel, Field

DEFAULT_RELAYS: tuple[str, ...] = (
    "wss://relay.damus.io",
    "wss://relay.nostr.band",
    "wss://nos.lol",
)
DEFAULT_TIMEOUT_S = 30.0
DEFAULT_READ_LIMIT = 10


class SendOptions(BaseModel):
    key: str
    recipient: str
    message: str
    relays: Optional[list[str]] = None
    timeout: Optional[float] = Field(default=None, gt=0)


class ReadOptions(BaseModel):
    key: str
    limit: int = Field(default=DEFAULT_READ_LIMIT, ge=1)
    relays: Optional[list[str]] = None
    timeout: Optional[float] = Field(default=None, gt=0)


def parse_relay_list(value: str) -> list[str]:
    """Split a comma-separated relay list as given on the command line."""
    return [part.strip() for part in value.split(",") if part.strip()]
