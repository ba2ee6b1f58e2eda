"""Dependency-injection root wiring the collaborators into the services."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable

from ..clients.identity import Identity, IdentityProvider, SessionIdentityProvider
from ..clients.llm import GeminiClient, LLMClient, build_llm_client
from ..clients.storage import InMemoryObjectStorage, ObjectStorage, build_object_storage
from ..config import Settings, get_settings
from ..store import DocumentStore, InMemoryDocumentStore, SqlDocumentStore
from .chat_service import ChatService
from .friend_request_service import FriendRequestService
from .friendship_service import FriendshipRegistry
from .profile_service import ProfileRegistry
from .rating_service import RatingService
from .wall_service import WallService

logger = logging.getLogger(__name__)


@dataclass
class SocialClient:
    """Owns one store, one identity provider, one object storage and an optional LLM.

    Every service shares the same store so live views observe each other's
    writes.
    """

    store: DocumentStore
    identity: IdentityProvider = field(default_factory=SessionIdentityProvider)
    storage: ObjectStorage = field(default_factory=InMemoryObjectStorage)
    settings: Settings = field(default_factory=get_settings)
    llm: LLMClient | None = None

    def __post_init__(self) -> None:
        separator = self.settings.channel_separator
        self.profiles = ProfileRegistry(
            self.store,
            self.storage,
            placeholder_name=self.settings.placeholder_name,
            llm=self.llm,
        )
        self.friendships = FriendshipRegistry(self.store, self.profiles, separator=separator)
        self.friend_requests = FriendRequestService(self.store, self.friendships, self.profiles)
        self.wall = WallService(self.store, self.profiles, self.friendships)
        self.chat = ChatService(self.store, separator=separator)
        self.ratings = RatingService(self.store)
        self._pending: set[asyncio.Task[object]] = set()
        self._unbind: Callable[[], None] = self.identity.on_session_change(self._on_session_change)

    def _on_session_change(self, identity: Identity | None) -> None:
        if identity is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.info("No running loop; profile for %s will be created on first request", identity.id)
            return
        task = loop.create_task(self.profiles.ensure_profile(identity))
        self._pending.add(task)
        task.add_done_callback(self._session_task_done)

    def _session_task_done(self, task: asyncio.Task[object]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Profile bootstrap after sign-in failed: %s", error)

    async def current_identity(self) -> Identity | None:
        """The signed-in identity with its profile guaranteed to exist."""

        identity = self.identity.current_identity()
        if identity is not None:
            await self.profiles.ensure_profile(identity)
        return identity

    async def settle(self) -> None:
        """Wait for profile bootstraps scheduled by session changes."""

        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        self._unbind()
        await self.settle()
        await self.store.close()
        if isinstance(self.store, SqlDocumentStore):
            self.store.dispose()
        if isinstance(self.llm, GeminiClient):
            self.llm.close()
        logger.info("Social client closed")


def build_store(settings: Settings) -> DocumentStore:
    if settings.resolved_store_backend() == "memory":
        logger.info("Using in-memory document store")
        return InMemoryDocumentStore()
    logger.info("Using SQL document store at %s", settings.sql_url())
    return SqlDocumentStore.from_url(settings.sql_url())


def build_client(settings: Settings | None = None, *, identity: IdentityProvider | None = None) -> SocialClient:
    settings = settings or get_settings()
    return SocialClient(
        store=build_store(settings),
        identity=identity or SessionIdentityProvider(),
        storage=build_object_storage(settings),
        settings=settings,
        llm=build_llm_client(settings),
    )


__all__ = ["SocialClient", "build_client", "build_store"]
