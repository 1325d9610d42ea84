from __future__ import annotations

from pydantic import BaseModel

from team_chat.domain.entities.user import User

UNKNOWN_USER_NAME = "Unknown user"


class UserResponse(BaseModel):
    ref: str
    name: str

    @classmethod
    def from_user(cls, user: User | None, ref: str) -> UserResponse:
        # A sender or peer that no longer resolves still renders.
        if user is None:
            return cls(ref=ref, name=UNKNOWN_USER_NAME)
        return cls(ref=user.subject, name=user.name)
