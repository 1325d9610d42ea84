from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from team_chat.domain.entities.user import User
from team_chat.domain.value_objects.ids import UserRef


class UserReader(Protocol):
    async def get_by_subject(self, subject: str) -> User | None:
        """Active user whose external subject equals ``subject``."""
        ...

    async def get_many(self, refs: Iterable[UserRef]) -> dict[UserRef, User]:
        """Active users keyed by ref. Unknown refs are left out."""
        ...

    async def list_active(self) -> list[User]:
        """Every active user, ordered by name."""
        ...
