"""
Relay wire message construction and parsing — NIP-01.

Client -> relay: ["EVENT", event], ["REQ", sub_id, filter], ["CLOSE", sub_id]
Relay -> client: ["OK", id, accepted, message], ["EVENT", sub_id, event],
                 ["EOSE", sub_id], ["CLOSED", sub_id, message], ["NOTICE", message]
"""

import json
import logging
import uuid
from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from nostr_dm.models.event import Filter, NostrEvent

logger = logging.getLogger(__name__)


class RelayMessage(BaseModel):
    type: str
    subscription_id: Optional[str] = None
    event: Optional[NostrEvent] = None
    event_id: Optional[str] = None
    accepted: Optional[bool] = None
    message: str = ""


def new_subscription_id() -> str:
    return uuid.uuid4().hex[:16]


def build_event_message(event: NostrEvent) -> str:
    return json.dumps(["EVENT", event.to_wire()], ensure_ascii=False)


def build_req_message(subscription_id: str, filter: Filter) -> str:
    return json.dumps(["REQ", subscription_id, filter.to_wire()])


def build_close_message(subscription_id: str) -> str:
    return json.dumps(["CLOSE", subscription_id])


def parse_relay_message(raw: str) -> Optional[RelayMessage]:
    """Parse a relay -> client message. Returns None if invalid."""
    try:
        data = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(data, list) or not data or not isinstance(data[0], str):
        return None

    kind, args = data[0], data[1:]
    try:
        if kind == "OK" and len(args) >= 2:
            return RelayMessage(
                type=kind, event_id=args[0], accepted=bool(args[1]),
                message=args[2] if len(args) > 2 and isinstance(args[2], str) else "",
            )
        if kind == "EVENT" and len(args) >= 2 and isinstance(args[1], dict):
            return RelayMessage(type=kind, subscription_id=args[0], event=NostrEvent.model_validate(args[1]))
        if kind == "EOSE" and len(args) >= 1:
            return RelayMessage(type=kind, subscription_id=args[0])
        if kind == "CLOSED" and len(args) >= 1:
            return RelayMessage(
                type=kind, subscription_id=args[0],
                message=args[1] if len(args) > 1 and isinstance(args[1], str) else "",
            )
        if kind == "NOTICE":
            return RelayMessage(type=kind, message=str(args[0]) if args else "")
    except ValidationError as e:
        logger.debug("Dropping malformed %s message: %s", kind, e)
        return None
    return None
