"""Schemas for pairwise chat messages."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .base import StoredRecord


class ChatMessage(StoredRecord):
    channel_id: str
    participants: list[str] = Field(default_factory=list)
    sender_id: str
    sender_name: str
    receiver_id: str
    receiver_name: str
    message: str
    created_at: datetime | None = None


class MessageSendRequest(BaseModel):
    receiver_id: str = Field(..., min_length=1, max_length=128)
    message: str = Field(..., max_length=4000)


class ConversationResponse(BaseModel):
    channel_id: str
    items: list[ChatMessage]


__all__ = ["ChatMessage", "MessageSendRequest", "ConversationResponse"]
