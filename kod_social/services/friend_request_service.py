"""Friend request lifecycle: ``pending -> accepted | rejected``."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..constants import FRIEND_REQUESTS
from ..errors import (
    AlreadyFriends,
    DuplicateRequest,
    InvalidOperation,
    PermissionDenied,
    RequestNotFound,
    StoreUnavailable,
)
from ..schemas import FriendRequest, Friendship, IncomingFriendRequest, Profile, records_from
from ..store import SERVER_TIMESTAMP, DocumentStore, Filter, QuerySnapshot, where
from .friendship_service import FriendshipRegistry
from .live import LiveView
from .pairing import require_user_id
from .profile_service import ProfileRegistry

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _oldest_first(requests: list[FriendRequest]) -> list[FriendRequest]:
    return sorted(requests, key=lambda item: item.created_at or _EPOCH)


class FriendRequestService:
    """Terminal states have no exits; only the recipient responds."""

    def __init__(
        self,
        store: DocumentStore,
        friendships: FriendshipRegistry,
        profiles: ProfileRegistry,
    ) -> None:
        self._store = store
        self._friendships = friendships
        self._profiles = profiles

    @staticmethod
    def _path(request_id: str) -> str:
        return f"{FRIEND_REQUESTS}/{require_user_id(request_id, label='request id')}"

    async def get(self, request_id: str) -> FriendRequest:
        snapshot = await self._store.get(self._path(request_id))
        if snapshot is None:
            raise RequestNotFound(f"Friend request {request_id} not found")
        return FriendRequest.from_document(snapshot)

    async def pending_between(self, first: str, second: str) -> list[FriendRequest]:
        """Pending requests in either direction between two different users."""

        snapshot = await self._store.query(
            FRIEND_REQUESTS,
            [
                where("sender_id", "in", [first, second]),
                where("recipient_id", "in", [first, second]),
                where("status", "==", "pending"),
            ],
        )
        return [
            request
            for request in records_from(snapshot, FriendRequest)
            if request.sender_id != request.recipient_id
        ]

    async def send(self, sender_id: str, recipient_id: str) -> FriendRequest:
        sender_id = require_user_id(sender_id, label="sender id")
        recipient_id = require_user_id(recipient_id, label="recipient id")
        if sender_id == recipient_id:
            raise InvalidOperation("Cannot send a friend request to yourself")
        self._friendships.friendship_id(sender_id, recipient_id)

        if await self._friendships.are_friends(sender_id, recipient_id):
            logger.info("Friend request %s -> %s rejected: already friends", sender_id, recipient_id)
            raise AlreadyFriends()

        if await self.pending_between(sender_id, recipient_id):
            logger.info("Friend request %s -> %s rejected: pending request exists", sender_id, recipient_id)
            raise DuplicateRequest()

        request_id = await self._store.create(
            FRIEND_REQUESTS,
            {
                "sender_id": sender_id,
                "recipient_id": recipient_id,
                "status": "pending",
                "created_at": SERVER_TIMESTAMP,
                "responded_at": None,
            },
        )
        logger.info("Friend request %s sent from %s to %s", request_id, sender_id, recipient_id)
        return await self.get(request_id)

    async def _pending_for_response(self, request_id: str, recipient_id: str | None) -> FriendRequest:
        request = await self.get(request_id)
        if recipient_id is not None and request.recipient_id != recipient_id:
            raise PermissionDenied("Only the recipient can respond to a friend request")
        if not request.is_pending:
            raise InvalidOperation(f"Friend request already {request.status}")
        return request

    async def accept(
        self,
        request_id: str,
        sender_id: str,
        *,
        recipient_id: str | None = None,
    ) -> Friendship:
        """Mark the request accepted and write the friendship in one batch."""

        request = await self._pending_for_response(request_id, recipient_id)
        if request.sender_id != sender_id:
            raise InvalidOperation("Sender does not match the friend request")

        batch = self._store.batch()
        batch.update(self._path(request.id), {"status": "accepted", "responded_at": SERVER_TIMESTAMP})
        self._friendships.stage(batch, request.recipient_id, request.sender_id)
        await batch.commit()
        logger.info("Friend request %s accepted by %s", request.id, request.recipient_id)

        friendship = await self._friendships.get(request.recipient_id, request.sender_id)
        if friendship is None:
            raise StoreUnavailable("Friendship was not persisted")
        return friendship

    async def reject(self, request_id: str, *, recipient_id: str | None = None) -> FriendRequest:
        request = await self._pending_for_response(request_id, recipient_id)
        await self._store.update(self._path(request.id), {"status": "rejected", "responded_at": SERVER_TIMESTAMP})
        logger.info("Friend request %s rejected by %s", request.id, request.recipient_id)
        return await self.get(request.id)

    async def _with_sender_names(self, requests: list[FriendRequest]) -> list[IncomingFriendRequest]:
        return [
            IncomingFriendRequest(
                **request.model_dump(),
                sender_name=await self._profiles.display_name(request.sender_id),
            )
            for request in _oldest_first(requests)
        ]

    def _incoming_filters(self, user_id: str) -> list[Filter]:
        return [
            where("recipient_id", "==", require_user_id(user_id)),
            where("status", "==", "pending"),
        ]

    async def incoming(self, user_id: str) -> list[IncomingFriendRequest]:
        snapshot = await self._store.query(FRIEND_REQUESTS, self._incoming_filters(user_id))
        return await self._with_sender_names(records_from(snapshot, FriendRequest))

    async def outgoing(self, user_id: str) -> list[FriendRequest]:
        snapshot = await self._store.query(
            FRIEND_REQUESTS,
            [where("sender_id", "==", require_user_id(user_id)), where("status", "==", "pending")],
        )
        return _oldest_first(records_from(snapshot, FriendRequest))

    async def watch_incoming(self, user_id: str) -> LiveView[list[IncomingFriendRequest]]:
        subscription = await self._store.subscribe(FRIEND_REQUESTS, self._incoming_filters(user_id))

        async def _transform(snapshot: QuerySnapshot) -> list[IncomingFriendRequest]:
            return await self._with_sender_names(records_from(snapshot, FriendRequest))

        return LiveView(subscription, _transform, name=f"incoming-requests:{user_id}")

    async def find_candidates(self, viewer_id: str, term: str, *, limit: int = 20) -> list[Profile]:
        """Directory matches the viewer could still send a request to."""

        viewer_id = require_user_id(viewer_id)
        excluded = {viewer_id} | await self._friendships.friend_ids(viewer_id)
        for request in await self.incoming(viewer_id):
            excluded.add(request.sender_id)
        for request in await self.outgoing(viewer_id):
            excluded.add(request.recipient_id)
        matches = await self._profiles.search_users(term, limit=limit + len(excluded))
        return [profile for profile in matches if profile.id not in excluded][:limit]


__all__ = ["FriendRequestService"]
