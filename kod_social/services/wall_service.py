"""Wall posts: append-only, visibility-scoped content on a profile."""
from __future__ import annotations

import logging
from datetime import datetime, timezone

from ..constants import VISIBILITIES, WALL_POSTS
from ..errors import EmptyContent, InvalidVisibility, StoreUnavailable
from ..schemas import WallPost, records_from
from ..store import SERVER_TIMESTAMP, DocumentStore, QuerySnapshot, where
from .friendship_service import FriendshipRegistry
from .live import LiveView
from .pairing import require_user_id
from .profile_service import ProfileRegistry

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def newest_first(posts: list[WallPost]) -> list[WallPost]:
    return sorted(posts, key=lambda post: post.created_at or _EPOCH, reverse=True)


class WallService:
    def __init__(
        self,
        store: DocumentStore,
        profiles: ProfileRegistry,
        friendships: FriendshipRegistry,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._friendships = friendships

    async def add_post(
        self,
        author_id: str,
        author_name: str | None,
        content: str,
        visibility: str = "public",
    ) -> WallPost:
        """Create a post; the author's current name is copied in and never re-synced."""

        author_id = require_user_id(author_id, label="author id")
        if not (content or "").strip():
            raise EmptyContent()
        if visibility not in VISIBILITIES:
            raise InvalidVisibility()
        name = (author_name or "").strip() or await self._profiles.display_name(author_id)

        post_id = await self._store.create(
            WALL_POSTS,
            {
                "author_id": author_id,
                "author_name": name,
                "content": content,
                "visibility": visibility,
                "created_at": SERVER_TIMESTAMP,
            },
        )
        logger.info("Wall post %s (%s) added by %s", post_id, visibility, author_id)
        snapshot = await self._store.get(f"{WALL_POSTS}/{post_id}")
        if snapshot is None:
            raise StoreUnavailable("Post was not persisted")
        return WallPost.from_document(snapshot)

    async def _can_see_wall(self, author_id: str, viewer_id: str | None) -> bool:
        profile = await self._profiles.get_profile(author_id)
        if profile is None or profile.is_public_wall:
            return True
        # A non-public wall is shown to friends only.
        if viewer_id is None:
            return False
        return await self._friendships.are_friends(author_id, viewer_id)

    async def _visible(self, author_id: str, viewer_id: str | None, posts: list[WallPost]) -> list[WallPost]:
        if viewer_id == author_id:
            return newest_first(posts)
        if not await self._can_see_wall(author_id, viewer_id):
            return []
        return newest_first([post for post in posts if post.visibility == "public"])

    async def _author_posts(self, author_id: str) -> list[WallPost]:
        snapshot = await self._store.query(WALL_POSTS, [where("author_id", "==", author_id)])
        return records_from(snapshot, WallPost)

    async def list_posts(self, author_id: str) -> list[WallPost]:
        """The owner's feed: every post by ``author_id``, newest first."""

        author_id = require_user_id(author_id, label="author id")
        return newest_first(await self._author_posts(author_id))

    async def posts_for_viewer(self, author_id: str, viewer_id: str | None) -> list[WallPost]:
        """Posts by ``author_id`` as ``viewer_id`` may see them; ``None`` is anonymous."""

        author_id = require_user_id(author_id, label="author id")
        return await self._visible(author_id, viewer_id, await self._author_posts(author_id))

    async def _watch(self, author_id: str, viewer_id: str | None, *, owner: bool) -> LiveView[list[WallPost]]:
        author_id = require_user_id(author_id, label="author id")
        subscription = await self._store.subscribe(WALL_POSTS, [where("author_id", "==", author_id)])

        async def _transform(snapshot: QuerySnapshot) -> list[WallPost]:
            posts = records_from(snapshot, WallPost)
            if owner:
                return newest_first(posts)
            return await self._visible(author_id, viewer_id, posts)

        return LiveView(subscription, _transform, name=f"wall:{author_id}")

    async def watch_posts(self, author_id: str) -> LiveView[list[WallPost]]:
        return await self._watch(author_id, author_id, owner=True)

    async def watch_posts_for_viewer(self, author_id: str, viewer_id: str | None) -> LiveView[list[WallPost]]:
        return await self._watch(author_id, viewer_id, owner=False)


__all__ = ["WallService", "newest_first"]
