"""Deterministic keys derived from channel identity.

Both functions are pure so that clients can recompute a topic without
asking the server.
"""
from __future__ import annotations

from urllib.parse import quote
from uuid import UUID

from team_chat.domain.value_objects.ids import UserRef

TOPIC_PREFIX = "chat"


def canonical_pair(user_a: UserRef, user_b: UserRef) -> tuple[UserRef, UserRef]:
    """Sort two refs lexicographically. The call order never matters."""
    if user_b < user_a:
        return user_b, user_a
    return user_a, user_b


def dm_key(user_a: UserRef, user_b: UserRef) -> str:
    """Collision-free key for an unordered pair.

    Each ref is percent-encoded with no safe characters, so the ``:``
    separator can never appear inside a component.
    """
    p0, p1 = canonical_pair(user_a, user_b)
    return f"dm:{quote(p0, safe='')}:{quote(p1, safe='')}"


def public_topic(channel_id: UUID) -> str:
    return f"{TOPIC_PREFIX}:channel:{channel_id}"


def dm_topic(user_a: UserRef, user_b: UserRef) -> str:
    return f"{TOPIC_PREFIX}:{dm_key(user_a, user_b)}"
