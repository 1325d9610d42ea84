from __future__ import annotations

from fastapi import APIRouter

from team_chat.api.deps import CurrentUser, UoWDep
from team_chat.api.v1.schemas.user import UserResponse
from team_chat.services import identity_service

router = APIRouter(prefix="/api/v1/chat/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_team_members(me: CurrentUser, uow: UoWDep) -> list[UserResponse]:
    users = await identity_service.directory(me, uow.users)
    return [UserResponse.from_user(u, u.subject) for u in users]
