"""Pairwise messaging keyed by an order-independent channel id."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..constants import ANONYMOUS_NAME, CHATS, DEFAULT_SEPARATOR
from ..errors import EmptyMessage, InvalidOperation, StoreUnavailable
from ..schemas import ChatMessage, records_from
from ..store import SERVER_TIMESTAMP, DocumentStore, QuerySnapshot, where
from .live import LiveView
from .pairing import canonical_pair_id, pairs_with, require_user_id

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def oldest_first(messages: list[ChatMessage]) -> list[ChatMessage]:
    return sorted(messages, key=lambda message: message.created_at or _EPOCH)


def between(messages: list[ChatMessage], first: str, second: str) -> list[ChatMessage]:
    """Keep only messages exchanged by exactly ``first`` and ``second``."""

    return [
        message
        for message in messages
        if (message.sender_id == first and message.receiver_id == second)
        or (message.sender_id == second and message.receiver_id == first)
    ]


class ChatService:
    def __init__(self, store: DocumentStore, *, separator: str = DEFAULT_SEPARATOR) -> None:
        self._store = store
        self.separator = separator

    def channel_id(self, first: str, second: str) -> str:
        return canonical_pair_id(first, second, self.separator)

    def _on_channel(self, messages: list[ChatMessage], channel_id: str) -> list[ChatMessage]:
        """Drop stored messages whose sender and receiver do not form ``channel_id``."""

        return [
            message
            for message in messages
            if pairs_with(message.sender_id, message.receiver_id, self.separator)
            and self.channel_id(message.sender_id, message.receiver_id) == channel_id
        ]

    async def send(
        self,
        channel_id: str,
        sender_id: str,
        sender_name: str | None,
        receiver_id: str,
        receiver_name: str | None,
        text: str,
    ) -> ChatMessage:
        """Append a message; its timestamp comes from the store, not this process."""

        sender_id = require_user_id(sender_id, label="sender id")
        receiver_id = require_user_id(receiver_id, label="receiver id")
        if not (text or "").strip():
            raise EmptyMessage()
        if sender_id == receiver_id:
            raise InvalidOperation("Cannot message yourself")
        if channel_id != self.channel_id(sender_id, receiver_id):
            raise InvalidOperation("Channel does not belong to this sender and receiver")

        message_id = await self._store.create(
            CHATS,
            {
                "channel_id": channel_id,
                "participants": [sender_id, receiver_id],
                "sender_id": sender_id,
                "sender_name": (sender_name or "").strip() or ANONYMOUS_NAME,
                "receiver_id": receiver_id,
                "receiver_name": (receiver_name or "").strip() or ANONYMOUS_NAME,
                "message": text,
                "created_at": SERVER_TIMESTAMP,
            },
        )
        logger.info("Message %s sent on channel %s", message_id, channel_id)
        snapshot = await self._store.get(f"{CHATS}/{message_id}")
        if snapshot is None:
            raise StoreUnavailable("Message was not persisted")
        return ChatMessage.from_document(snapshot)

    async def history(self, channel_id: str) -> list[ChatMessage]:
        snapshot = await self._store.query(CHATS, [where("channel_id", "==", channel_id)])
        return oldest_first(self._on_channel(records_from(snapshot, ChatMessage), channel_id))

    async def subscribe(self, channel_id: str) -> LiveView[list[ChatMessage]]:
        """Live conversation filtered on the channel id itself."""

        subscription = await self._store.subscribe(CHATS, [where("channel_id", "==", channel_id)])

        async def _transform(snapshot: QuerySnapshot) -> list[ChatMessage]:
            return oldest_first(self._on_channel(records_from(snapshot, ChatMessage), channel_id))

        return LiveView(subscription, _transform, name=f"chat:{channel_id}")

    # Membership fallback: query everything ``first`` takes part in, then keep
    # only the exact pair, for stores that cannot filter on the computed key.

    async def conversation(self, first: str, second: str) -> list[ChatMessage]:
        first = require_user_id(first)
        second = require_user_id(second)
        snapshot = await self._store.query(CHATS, [where("participants", "array-contains", first)])
        return oldest_first(between(records_from(snapshot, ChatMessage), first, second))

    async def watch_conversation(self, first: str, second: str) -> LiveView[list[ChatMessage]]:
        first = require_user_id(first)
        second = require_user_id(second)
        subscription = await self._store.subscribe(CHATS, [where("participants", "array-contains", first)])

        async def _transform(snapshot: QuerySnapshot) -> list[ChatMessage]:
            return oldest_first(between(records_from(snapshot, ChatMessage), first, second))

        return LiveView(subscription, _transform, name=f"conversation:{self.channel_id(first, second)}")


__all__ = ["ChatService", "between", "oldest_first"]
