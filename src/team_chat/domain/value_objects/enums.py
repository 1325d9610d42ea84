from __future__ import annotations

from enum import StrEnum


class ChannelType(StrEnum):
    PUBLIC = "public"
    DM = "dm"


class EventType(StrEnum):
    MESSAGE_CREATED = "message.created"
    CHANNEL_READ = "channel.read"


class AttachmentKind(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"
