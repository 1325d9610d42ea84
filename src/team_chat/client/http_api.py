"""httpx transport for the chat REST API."""
from __future__ import annotations

import logging
from typing import Any, Literal
from urllib.parse import quote

import httpx

from team_chat.application.exceptions import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TransientWriteFailure,
    UnknownIdentity,
    ValidationError,
)
from team_chat.client.models import ClientMessage

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1/chat"

_STATUS_ERRORS: dict[int, type[AppError]] = {
    401: UnknownIdentity,
    403: ForbiddenError,
    404: NotFoundError,
    409: ConflictError,
    422: ValidationError,
}


class HttpMessagingApi:
    """Implements client.ports.MessagingApi against the REST surface."""

    def __init__(
        self,
        base_url: str,
        token: str,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = token
        self.http = http or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(connect=5.0, read=15.0, write=10.0, pool=5.0),
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    async def _call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self.http.request(
                method,
                API_PREFIX + path,
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {self._token}"},
            )
        except httpx.HTTPError as exc:
            raise TransientWriteFailure(f"connection_failed: {exc}") from exc

        if response.status_code >= 500:
            raise TransientWriteFailure(f"server_error_{response.status_code}")
        if response.status_code >= 400:
            error_cls = _STATUS_ERRORS.get(response.status_code, AppError)
            raise error_cls(_detail(response))
        return response.json()

    async def send_message(
        self,
        channel_id: str,
        *,
        client_msg_id: str,
        content: str,
        reply_to_id: str | None = None,
    ) -> ClientMessage:
        data = await self._call(
            "POST",
            f"/channels/{channel_id}/messages",
            json={
                "client_msg_id": client_msg_id,
                "content": content,
                "reply_to_id": reply_to_id,
            },
        )
        return ClientMessage.from_response(data)

    async def send_direct_message(
        self, peer_ref: str, *, client_msg_id: str, content: str,
    ) -> ClientMessage:
        data = await self._call(
            "POST",
            f"/dms/{quote(peer_ref, safe='')}/messages",
            json={"client_msg_id": client_msg_id, "content": content},
        )
        return ClientMessage.from_response(data)

    async def list_messages(
        self,
        channel_id: str,
        *,
        cursor: str | None = None,
        direction: Literal["before", "after"] = "before",
        limit: int = 50,
    ) -> tuple[list[ClientMessage], str | None]:
        params: dict[str, Any] = {"direction": direction, "limit": limit}
        if cursor:
            params["cursor"] = cursor
        data = await self._call("GET", f"/channels/{channel_id}/messages", params=params)
        return [ClientMessage.from_response(m) for m in data["items"]], data.get("next_cursor")

    async def mark_read(self, channel_id: str, up_to_message_id: str | None = None) -> None:
        await self._call(
            "POST",
            f"/channels/{channel_id}/read",
            json={"up_to_message_id": up_to_message_id},
        )

    async def list_channels(self) -> list[dict[str, Any]]:
        return await self._call("GET", "/channels")

    async def total_unread(self) -> int:
        data = await self._call("GET", "/unread")
        return int(data["count"])


def _detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("detail", ""))
    return str(body)
