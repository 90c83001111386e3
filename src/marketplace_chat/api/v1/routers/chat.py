from __future__ import annotations

from fastapi import APIRouter

from marketplace_chat.api.deps import CurrentPrincipal, RegistryDep, UoWDep
from marketplace_chat.api.v1.schemas.conversation import ConversationSummaryResponse
from marketplace_chat.api.v1.schemas.message import MarkReadResponse, MessageResponse
from marketplace_chat.services import conversation_service, message_service, read_state_service

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.get("/active", response_model=list[ConversationSummaryResponse])
async def list_active_chats(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[ConversationSummaryResponse]:
    summaries = await conversation_service.list_active(principal, uow)
    return [ConversationSummaryResponse.model_validate(s, from_attributes=True) for s in summaries]


@router.get("/{counterparty_id}", response_model=list[MessageResponse])
async def get_history(
    counterparty_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[MessageResponse]:
    messages = await message_service.get_history(principal, counterparty_id, uow)
    return [MessageResponse.model_validate(m, from_attributes=True) for m in messages]


@router.put("/{counterparty_id}/read", response_model=MarkReadResponse)
async def mark_read(
    counterparty_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
    registry: RegistryDep,
) -> MarkReadResponse:
    updated = await read_state_service.mark_read(principal, counterparty_id, uow)
    await conversation_service.publish_viewer_summary(principal, counterparty_id, uow, registry)
    return MarkReadResponse(updated=updated)
