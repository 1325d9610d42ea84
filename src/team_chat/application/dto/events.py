from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class BroadcastEvent:
    """Wire form of a fan-out event as received by a subscriber."""

    topic: str
    event_type: str
    payload: dict[str, Any]

    @property
    def channel_id(self) -> str | None:
        return self.payload.get("channel_id")
