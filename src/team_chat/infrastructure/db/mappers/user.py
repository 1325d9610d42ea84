from __future__ import annotations

from team_chat.domain.entities.user import User
from team_chat.domain.value_objects.ids import InternalUserId, UserRef
from team_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    return User(
        id=InternalUserId(model.id),
        subject=UserRef(model.subject),
        name=model.name,
        email=model.email,
        is_active=model.is_active,
    )
