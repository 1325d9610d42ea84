from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from team_chat.domain.value_objects.ids import UserRef


@dataclass(frozen=True, slots=True)
class Attachment:
    url: str
    kind: str
    filename: str | None = None
    public_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "kind": self.kind,
            "filename": self.filename,
            "public_id": self.public_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Attachment:
        return cls(
            url=data["url"],
            kind=data.get("kind", "file"),
            filename=data.get("filename"),
            public_id=data.get("public_id"),
        )


@dataclass(frozen=True, slots=True)
class Mention:
    """Opaque reference to an object owned by another subsystem."""

    ref_id: str
    label: str

    def to_dict(self) -> dict[str, Any]:
        return {"ref_id": self.ref_id, "label": self.label}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Mention:
        return cls(ref_id=data["ref_id"], label=data.get("label", ""))


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    seq: int
    channel_id: UUID
    sender_ref: UserRef
    content: str
    reply_to_id: UUID | None
    client_msg_id: UUID
    created_at: datetime
    attachments: tuple[Attachment, ...] = field(default_factory=tuple)
    mentions: tuple[Mention, ...] = field(default_factory=tuple)
