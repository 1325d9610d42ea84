"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from team_chat.application.dto.principal import Principal
from team_chat.application.ports.auth import TokenVerifier
from team_chat.application.ports.bus import EventPublisher
from team_chat.application.ports.notifier import OfflineNotifier
from team_chat.config import settings
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.auth.hs256_verifier import HS256Verifier
from team_chat.infrastructure.auth.jwks_verifier import JWKSVerifier
from team_chat.infrastructure.db.uow import SqlAlchemyUoW, uow_scope
from team_chat.infrastructure.notify.log_notifier import LoggingNotifier
from team_chat.services import identity_service

_bearer_scheme = HTTPBearer()


async def get_uow() -> AsyncIterator[SqlAlchemyUoW]:
    async with uow_scope() as uow:
        yield uow


UoWDep = Annotated[SqlAlchemyUoW, Depends(get_uow)]


def _get_verifier() -> TokenVerifier:
    if settings.JWT_VERIFY_MODE == "jwks":
        return JWKSVerifier(settings.JWKS_URL or "", audience=settings.JWT_AUDIENCE)
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = _get_verifier()
    return _verifier


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    verifier: Annotated[TokenVerifier, Depends(get_verifier)],
) -> Principal:
    try:
        return await verifier.verify(credentials.credentials)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


async def get_current_user(principal: CurrentPrincipal, uow: UoWDep) -> UserRef:
    """Resolve the token subject to a UserRef. UnknownIdentity maps to 401."""
    return await identity_service.resolve(principal.subject, uow.users)


CurrentUser = Annotated[UserRef, Depends(get_current_user)]


def get_publisher(request: Request) -> EventPublisher:
    return request.app.state.publisher


PublisherDep = Annotated[EventPublisher, Depends(get_publisher)]


_notifier = LoggingNotifier()


def get_notifier() -> OfflineNotifier:
    return _notifier


NotifierDep = Annotated[OfflineNotifier, Depends(get_notifier)]
