from __future__ import annotations

from collections.abc import Iterable

from team_chat.application.exceptions import UnknownIdentity
from team_chat.application.repositories.user import UserReader
from team_chat.domain.entities.user import User
from team_chat.domain.value_objects.ids import UserRef


async def resolve(external_subject: str, users: UserReader) -> UserRef:
    """Map an identity-provider subject to the canonical UserRef.

    There is no fallback to any other identifier space: an unmapped subject
    fails the request.
    """
    if not external_subject:
        raise UnknownIdentity("Empty subject")
    user = await users.get_by_subject(external_subject)
    if user is None:
        raise UnknownIdentity(f"Unknown identity: {external_subject}")
    return user.subject


async def describe(refs: Iterable[UserRef], users: UserReader) -> dict[UserRef, User]:
    return await users.get_many(set(refs))


async def directory(me: UserRef, users: UserReader) -> list[User]:
    """Team members ``me`` can open a direct channel with."""
    return [u for u in await users.list_active() if u.subject != me]
