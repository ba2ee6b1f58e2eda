"""Pairwise chat API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..clients.identity import Identity
from ..schemas import ChatMessage, ConversationResponse, MessageSendRequest
from ..services import SocialClient
from .deps import get_client, get_current_identity

router = APIRouter(prefix="/chats", tags=["chats"])


@router.post("/send", response_model=ChatMessage, status_code=status.HTTP_201_CREATED)
async def send_message_endpoint(
    payload: MessageSendRequest,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> ChatMessage:
    channel_id = client.chat.channel_id(identity.id, payload.receiver_id)
    return await client.chat.send(
        channel_id,
        identity.id,
        await client.profiles.display_name(identity.id),
        payload.receiver_id,
        await client.profiles.display_name(payload.receiver_id),
        payload.message,
    )


@router.get("/{other_id}", response_model=ConversationResponse)
async def conversation_endpoint(
    other_id: str,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> ConversationResponse:
    channel_id = client.chat.channel_id(identity.id, other_id)
    return ConversationResponse(channel_id=channel_id, items=await client.chat.history(channel_id))


__all__ = ["router"]
