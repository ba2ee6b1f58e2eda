"""Friendship registry: one symmetric document per unordered pair of users."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ..constants import DEFAULT_SEPARATOR, FRIENDSHIPS
from ..errors import InvalidOperation, StoreUnavailable
from ..schemas import FriendSummary, Friendship, records_from
from ..store import SERVER_TIMESTAMP, DocumentStore, QuerySnapshot, WriteBatch, where
from .live import LiveView
from .pairing import canonical_pair_id, pairs_with, require_user_id
from .profile_service import ProfileRegistry

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class FriendshipRegistry:
    def __init__(
        self,
        store: DocumentStore,
        profiles: ProfileRegistry,
        *,
        separator: str = DEFAULT_SEPARATOR,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self.separator = separator

    def friendship_id(self, first: str, second: str) -> str:
        return canonical_pair_id(first, second, self.separator)

    def _path(self, first: str, second: str) -> str:
        return f"{FRIENDSHIPS}/{self.friendship_id(first, second)}"

    def _document(self, first: str, second: str) -> dict[str, Any]:
        first = require_user_id(first)
        second = require_user_id(second)
        if first == second:
            raise InvalidOperation("A friendship needs two different users")
        return {"members": [first, second], "established_at": SERVER_TIMESTAMP}

    def stage(self, batch: WriteBatch, first: str, second: str) -> str:
        """Add the friendship write to ``batch``; returns the canonical id."""

        batch.set(self._path(first, second), self._document(first, second))
        return self.friendship_id(first, second)

    async def establish(self, first: str, second: str) -> Friendship:
        """Write the pair's friendship; re-running overwrites the same document."""

        await self._store.set(self._path(first, second), self._document(first, second))
        logger.info("Friendship established between %s and %s", first, second)
        friendship = await self.get(first, second)
        if friendship is None:
            raise StoreUnavailable("Friendship was not persisted")
        return friendship

    async def get(self, first: str, second: str) -> Friendship | None:
        snapshot = await self._store.get(self._path(require_user_id(first), require_user_id(second)))
        return Friendship.from_document(snapshot) if snapshot is not None else None

    async def are_friends(self, first: str, second: str) -> bool:
        if first == second or not pairs_with(first, second, self.separator):
            return False
        return await self.get(first, second) is not None

    async def friendships_of(self, user_id: str) -> list[Friendship]:
        snapshot = await self._store.query(FRIENDSHIPS, [where("members", "array-contains", require_user_id(user_id))])
        return self._ordered(records_from(snapshot, Friendship))

    @staticmethod
    def _ordered(friendships: list[Friendship]) -> list[Friendship]:
        return sorted(friendships, key=lambda item: item.established_at or _EPOCH)

    async def _summaries(self, user_id: str, friendships: list[Friendship]) -> list[FriendSummary]:
        summaries: list[FriendSummary] = []
        for friendship in friendships:
            friend_id = friendship.other_member(user_id)
            if friend_id is None:
                continue
            profile = await self._profiles.get_profile(friend_id)
            summaries.append(
                FriendSummary(
                    id=friend_id,
                    name=self._profiles.name_of(profile),
                    avatar_url=profile.avatar_url if profile is not None else "",
                    found=profile is not None,
                )
            )
        return summaries

    async def list_friends(self, user_id: str) -> list[FriendSummary]:
        """Friends of ``user_id``; a friend without a profile gets a placeholder entry."""

        return await self._summaries(user_id, await self.friendships_of(user_id))

    async def friend_ids(self, user_id: str) -> set[str]:
        friend_ids: set[str] = set()
        for friendship in await self.friendships_of(user_id):
            friend_id = friendship.other_member(user_id)
            if friend_id is not None:
                friend_ids.add(friend_id)
        return friend_ids

    async def watch_friends(self, user_id: str) -> LiveView[list[FriendSummary]]:
        subscription = await self._store.subscribe(
            FRIENDSHIPS, [where("members", "array-contains", require_user_id(user_id))]
        )

        async def _transform(snapshot: QuerySnapshot) -> list[FriendSummary]:
            return await self._summaries(user_id, self._ordered(records_from(snapshot, Friendship)))

        return LiveView(subscription, _transform, name=f"friends:{user_id}")


__all__ = ["FriendshipRegistry"]
