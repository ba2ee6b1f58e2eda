"""Shared fixtures: every test gets a fresh in-memory store and client."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Iterator, TypeVar

import pytest

from kod_social.clients import CompletionResult, Identity, InMemoryObjectStorage, SessionIdentityProvider
from kod_social.config import Settings
from kod_social.services import SocialClient
from kod_social.store import InMemoryDocumentStore

T = TypeVar("T")


def run(coro: Awaitable[T]) -> T:
    return asyncio.run(coro)  # type: ignore[arg-type]


class SteppingClock:
    """Deterministic clock; every reading is one second after the previous one."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(seconds=1)
        return self.current


class FakeLLM:
    """Records prompts and answers with a canned reply or error."""

    def __init__(self, reply: str = "Curious builder who loves brands.") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[list[dict[str, str]]] = []

    def complete(self, *, messages: Any, temperature: float = 0.7) -> CompletionResult:
        self.calls.append(list(messages))
        if self.error is not None:
            raise self.error
        return CompletionResult(text=self.reply, model="fake")


@pytest.fixture
def settings() -> Settings:
    return Settings(store_backend="memory", storage_backend="memory", public_base_url="http://cdn.test")


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore(clock=SteppingClock())


@pytest.fixture
def storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage(base_url="http://cdn.test")


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def social(
    store: InMemoryDocumentStore,
    storage: InMemoryObjectStorage,
    settings: Settings,
    llm: FakeLLM,
) -> Iterator[SocialClient]:
    client = SocialClient(store=store, identity=SessionIdentityProvider(), storage=storage, settings=settings, llm=llm)
    yield client


@pytest.fixture
def make_user(social: SocialClient) -> Callable[..., Identity]:
    """Create a profile for a new identity and return the identity."""

    def _factory(user_id: str, name: str | None = None, **extra: Any) -> Identity:
        identity = Identity(
            id=user_id,
            email=f"{user_id}@example.com",
            display_name=name if name is not None else user_id.title(),
            **extra,
        )
        run(social.profiles.ensure_profile(identity))
        return identity

    return _factory
