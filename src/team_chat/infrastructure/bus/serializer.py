"""JSON envelope shared by every process on the fan-out channel."""
from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from team_chat.application.dto.events import BroadcastEvent


def _default(o: object) -> Any:
    if isinstance(o, UUID):
        return str(o)
    if isinstance(o, datetime):
        return o.isoformat()
    if isinstance(o, Enum):
        return o.value
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


def serialize_event(topic: str, event_type: str, payload: dict[str, Any]) -> str:
    envelope = {"topic": topic, "event": event_type, "data": payload}
    return json.dumps(envelope, default=_default)


def deserialize_event(raw: str | bytes) -> BroadcastEvent:
    envelope = json.loads(raw)
    return BroadcastEvent(
        topic=envelope["topic"],
        event_type=envelope["event"],
        payload=envelope["data"],
    )
