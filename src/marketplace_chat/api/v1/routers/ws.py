from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from marketplace_chat.api.deps import UoWFactory, get_registry, get_uow_factory, get_verifier
from marketplace_chat.application.dto.principal import Principal
from marketplace_chat.application.events import (
    BOOKING_UPDATED,
    ERROR,
    MARK_READ,
    MESSAGE_ERROR,
    NEW_BOOKING,
    PING,
    PONG,
    SEND_MESSAGE,
)
from marketplace_chat.application.exceptions import AppError, AuthenticationError
from marketplace_chat.config import settings
from marketplace_chat.infrastructure.ws.manager import RoomRegistry
from marketplace_chat.infrastructure.ws.protocol import WsInbound, WsOutbound
from marketplace_chat.services import (
    conversation_service,
    delivery_service,
    notification_service,
    read_state_service,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

AUTH_FAILED_CLOSE_CODE = 4001


async def _authenticate(token: str | None) -> Principal | None:
    if not token:
        logger.info("WS rejected: no token provided")
        return None
    try:
        return await get_verifier().verify(token)
    except AuthenticationError as exc:
        logger.info("WS rejected: %s", exc.detail)
        return None


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str | None = Query(None),
    registry: RoomRegistry = Depends(get_registry),
    uow_factory: UoWFactory = Depends(get_uow_factory),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=AUTH_FAILED_CLOSE_CODE, reason="Authentication error")
        return

    await registry.connect(websocket, principal.room)
    logger.info("User connected: %s (%s)", principal.id, principal.role)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{principal.id}",
    )
    try:
        await _read_loop(websocket, principal, registry, uow_factory)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", principal.id)
    finally:
        heartbeat_task.cancel()
        registry.disconnect(websocket)
        logger.info("User disconnected: %s", principal.id)


async def _send(ws: WebSocket, event: str, data: dict[str, Any]) -> None:
    await ws.send_text(WsOutbound(type=event, data=data).model_dump_json())


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await _send(ws, PONG, {})
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("Heartbeat stopped", exc_info=True)


async def _read_loop(
    ws: WebSocket,
    principal: Principal,
    registry: RoomRegistry,
    uow_factory: UoWFactory,
) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await _send(ws, ERROR, {"code": "invalid_payload"})
            continue

        if msg.type == PING:
            await _send(ws, PONG, {})

        elif msg.type == SEND_MESSAGE:
            await _handle_send(ws, principal, msg.data, registry, uow_factory)

        elif msg.type == MARK_READ:
            await _handle_mark_read(ws, principal, msg.data, registry, uow_factory)

        elif msg.type in (NEW_BOOKING, BOOKING_UPDATED):
            await _handle_booking(ws, principal, msg.type, msg.data, registry)

        else:
            await _send(ws, ERROR, {"code": "unknown_type", "type": msg.type})


async def _handle_send(
    ws: WebSocket,
    principal: Principal,
    data: dict[str, Any],
    registry: RoomRegistry,
    uow_factory: UoWFactory,
) -> None:
    try:
        async with uow_factory() as uow:
            await delivery_service.deliver(data, principal, uow, registry, ws)
    except Exception:
        # deliver() reports its own rejections; this is an unexpected failure
        logger.exception("send-message failed for %s", principal.id)
        error: dict[str, Any] = {"error": "Failed to send message"}
        if data.get("tempId") is not None:
            error["tempId"] = str(data["tempId"])
        await _send(ws, MESSAGE_ERROR, error)


async def _handle_mark_read(
    ws: WebSocket,
    principal: Principal,
    data: dict[str, Any],
    registry: RoomRegistry,
    uow_factory: UoWFactory,
) -> None:
    counterparty_id = str(data.get("counterpartyId") or "")
    try:
        async with uow_factory() as uow:
            await read_state_service.mark_read(principal, counterparty_id, uow)
            await conversation_service.publish_viewer_summary(
                principal, counterparty_id, uow, registry,
            )
    except AppError as exc:
        await _send(ws, ERROR, {"code": "mark_read_failed", "detail": exc.detail})
    except Exception:
        logger.exception("mark-read failed for %s", principal.id)


async def _handle_booking(
    ws: WebSocket,
    principal: Principal,
    event: str,
    data: dict[str, Any],
    registry: RoomRegistry,
) -> None:
    try:
        await notification_service.relay_booking(event, data, principal, registry)
    except AppError as exc:
        await _send(ws, ERROR, {"code": "relay_failed", "type": event, "detail": exc.detail})
