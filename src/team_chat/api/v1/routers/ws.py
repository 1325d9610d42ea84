from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError as PydanticValidationError

from team_chat.api.deps import get_notifier, get_verifier
from team_chat.api.v1.schemas.message import MessageResponse, SendMessageRequest
from team_chat.application.exceptions import AppError
from team_chat.application.ports.bus import EventPublisher
from team_chat.config import settings
from team_chat.domain.value_objects.ids import UserRef
from team_chat.infrastructure.db.uow import uow_scope
from team_chat.infrastructure.ws.manager import ConnectionManager
from team_chat.infrastructure.ws.protocol import WsInbound, WsOutbound
from team_chat.services import channel_service, identity_service, message_service, read_state_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

manager = ConnectionManager()


def get_manager() -> ConnectionManager:
    return manager


async def _authenticate(token: str) -> UserRef | None:
    try:
        principal = await get_verifier().verify(token)
        async with uow_scope() as uow:
            return await identity_service.resolve(principal.subject, uow.users)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


async def _send(ws: WebSocket, type_: str, data: dict[str, Any], topic: str | None = None) -> None:
    await ws.send_text(WsOutbound(type=type_, topic=topic, data=data).model_dump_json())


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    me = await _authenticate(token)
    if me is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    await manager.connect(websocket, me)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{me}",
    )
    try:
        await _read_loop(websocket, me)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", me)
    finally:
        heartbeat_task.cancel()
        manager.disconnect(websocket, me)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await _send(ws, "pong", {})
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Heartbeat stopped", exc_info=True)


async def _read_loop(ws: WebSocket, me: UserRef) -> None:
    publisher: EventPublisher = ws.app.state.publisher
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except PydanticValidationError:
            await _send(ws, "error", {"code": "invalid_payload"})
            continue

        try:
            if msg.type == "ping":
                await _send(ws, "pong", {})
            elif msg.type == "subscribe":
                await _handle_subscribe(ws, me, msg.data)
            elif msg.type == "unsubscribe":
                await _handle_unsubscribe(ws, me, msg.data)
            elif msg.type == "message.send":
                await _handle_send(ws, me, msg.data, publisher)
            elif msg.type == "mark_read":
                await _handle_mark_read(ws, me, msg.data, publisher)
        except AppError as exc:
            await _send(
                ws, "error",
                {"code": type(exc).__name__, "detail": exc.detail, "request": msg.type},
            )
        except (KeyError, ValueError, PydanticValidationError) as exc:
            await _send(ws, "error", {"code": "invalid_data", "detail": str(exc)})


async def _handle_subscribe(ws: WebSocket, me: UserRef, data: dict[str, Any]) -> None:
    channel_id = UUID(data["channel_id"])
    async with uow_scope() as uow:
        channel = await channel_service.get_channel(channel_id, me, uow)
    # Topic is derived server-side after the access check.
    topic = channel_service.resolve_topic_for(channel)
    manager.subscribe(ws, topic)
    await _send(ws, "subscribed", {"channel_id": str(channel.id)}, topic=topic)


async def _handle_unsubscribe(ws: WebSocket, me: UserRef, data: dict[str, Any]) -> None:
    channel_id = UUID(data["channel_id"])
    async with uow_scope() as uow:
        channel = await channel_service.get_channel(channel_id, me, uow)
    topic = channel_service.resolve_topic_for(channel)
    manager.unsubscribe(ws, topic)
    await _send(ws, "unsubscribed", {"channel_id": str(channel.id)}, topic=topic)


async def _handle_send(
    ws: WebSocket, me: UserRef, data: dict[str, Any], publisher: EventPublisher,
) -> None:
    body = SendMessageRequest.model_validate(data)
    if data.get("channel_id"):
        dto = body.to_dto(channel_id=UUID(data["channel_id"]))
    else:
        dto = body.to_dto(recipient_ref=data["recipient_ref"])

    async with uow_scope() as uow:
        view, created = await message_service.send_message(
            dto, me, uow, publisher, get_notifier(),
        )
    # The message.created broadcast reaches subscribers through the bus;
    # the sender additionally gets a direct ack keyed by client_msg_id.
    await _send(
        ws, "ack",
        {"created": created, "message": MessageResponse.from_view(view).model_dump(mode="json")},
    )


async def _handle_mark_read(
    ws: WebSocket, me: UserRef, data: dict[str, Any], publisher: EventPublisher,
) -> None:
    channel_id = UUID(data["channel_id"])
    up_to = data.get("up_to_message_id")
    async with uow_scope() as uow:
        state = await read_state_service.mark_read(
            me, channel_id, uow, publisher,
            up_to_message_id=UUID(up_to) if up_to else None,
        )
    await _send(
        ws, "ack",
        {
            "channel_id": str(state.channel_id),
            "last_read_message_id": (
                str(state.last_read_message_id) if state.last_read_message_id else None
            ),
        },
    )
