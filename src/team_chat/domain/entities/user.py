from __future__ import annotations

from dataclasses import dataclass

from team_chat.domain.value_objects.ids import InternalUserId, UserRef


@dataclass(frozen=True, slots=True)
class User:
    id: InternalUserId
    subject: UserRef
    name: str
    email: str
    is_active: bool = True
