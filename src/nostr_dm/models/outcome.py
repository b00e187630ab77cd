"""
Per-relay outcome of one publish or query.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict

from nostr_dm.errors import RelayError


class RelayOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    succeeded: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    events: Optional[int] = None  # events received, query path only

    @classmethod
    def success(cls, url: str, events: Optional[int] = None) -> "RelayOutcome":
        return cls(url=url, succeeded=True, events=events)

    @classmethod
    def failure(cls, url: str, error: RelayError) -> "RelayOutcome":
        return cls(url=url, succeeded=False, error=str(error), error_code=error.code)
