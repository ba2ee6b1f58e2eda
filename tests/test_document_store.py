"""Behaviour of the in-memory document store and its live subscriptions."""
from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Sequence

import pytest

from kod_social.errors import DocumentNotFound, SubscriptionError
from kod_social.store import SERVER_TIMESTAMP, InMemoryDocumentStore, where
from kod_social.store.query import DocumentSnapshot, Filter, collection_matches, split_path


def _frozen_clock() -> datetime:
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_server_timestamp_is_resolved_and_strictly_increasing() -> None:
    store = InMemoryDocumentStore(clock=_frozen_clock)

    async def scenario() -> list[datetime]:
        first = await store.create("notes", {"created_at": SERVER_TIMESTAMP})
        second = await store.create("notes", {"created_at": SERVER_TIMESTAMP, "nested": {"at": SERVER_TIMESTAMP}})
        one = await store.get(f"notes/{first}")
        two = await store.get(f"notes/{second}")
        assert one is not None and two is not None
        assert two.get("nested.at") == two.get("created_at")
        return [one.get("created_at"), two.get("created_at")]

    stamps = asyncio.run(scenario())
    assert all(isinstance(stamp, datetime) for stamp in stamps)
    assert stamps[0] < stamps[1]


def test_update_merges_fields_and_requires_existing_document() -> None:
    store = InMemoryDocumentStore()

    async def scenario() -> DocumentSnapshot | None:
        await store.set("people/ada", {"name": "Ada", "city": "London"})
        await store.update("people/ada", {"city": "Cambridge"})
        with pytest.raises(DocumentNotFound):
            await store.update("people/ghost", {"city": "Nowhere"})
        return await store.get("people/ada")

    snapshot = asyncio.run(scenario())
    assert snapshot is not None
    assert snapshot.to_dict() == {"id": "ada", "name": "Ada", "city": "Cambridge"}
    assert store.document_count("people") == 1


def test_filters_are_combined_with_and() -> None:
    store = InMemoryDocumentStore()

    async def scenario() -> dict[str, list[str]]:
        await store.set("items/a", {"kind": "x", "tags": ["red"], "n": 1})
        await store.set("items/b", {"kind": "y", "tags": ["red", "blue"], "n": 2})
        await store.set("items/c", {"kind": "x", "tags": ["blue"], "n": 3})
        return {
            "eq": (await store.query("items", [where("kind", "==", "x")])).ids,
            "ne": (await store.query("items", [where("kind", "!=", "x")])).ids,
            "in": (await store.query("items", [where("n", "in", [1, 3])])).ids,
            "contains": (await store.query("items", [where("tags", "array-contains", "red")])).ids,
            "and": (
                await store.query("items", [where("kind", "==", "x"), where("tags", "array-contains", "blue")])
            ).ids,
        }

    results = asyncio.run(scenario())
    assert results == {
        "eq": ["a", "c"],
        "ne": ["b"],
        "in": ["a", "c"],
        "contains": ["a", "b"],
        "and": ["c"],
    }


def test_wildcard_collection_spans_parent_documents() -> None:
    store = InMemoryDocumentStore()

    async def scenario() -> list[str]:
        await store.set("users/u1/profile/data", {"name": "One"})
        await store.set("users/u2/profile/data", {"name": "Two"})
        await store.set("users/u2/settings/data", {"theme": "dark"})
        snapshot = await store.query("users/*/profile")
        return [document.path for document in snapshot]

    assert asyncio.run(scenario()) == ["users/u1/profile/data", "users/u2/profile/data"]
    assert collection_matches("users/*/profile", "users/x/profile")
    assert not collection_matches("users/*/profile", "users/x/profile/y/z")


def test_paths_and_operators_are_validated() -> None:
    assert split_path("a/b/c/d") == ("a/b/c", "d")
    with pytest.raises(ValueError):
        split_path("only-collection")
    with pytest.raises(ValueError):
        Filter("field", "<", 3)
    with pytest.raises(ValueError):
        where("field", "in", "not-a-list")


def test_subscription_pushes_initial_and_changed_results_only() -> None:
    store = InMemoryDocumentStore()

    async def scenario() -> list[list[str]]:
        await store.set("tasks/t1", {"status": "open"})
        seen: list[list[str]] = []
        async with await store.subscribe("tasks", [where("status", "==", "open")]) as subscription:
            seen.append((await subscription.__anext__()).ids)
            # Not part of the result set: nothing is pushed for this write.
            await store.set("tasks/t2", {"status": "done"})
            await store.set("tasks/t3", {"status": "open"})
            seen.append((await subscription.__anext__()).ids)
            await store.update("tasks/t1", {"status": "done"})
            seen.append((await subscription.__anext__()).ids)
        assert store.active_subscriptions == 0
        return seen

    assert asyncio.run(scenario()) == [["t1"], ["t1", "t3"], ["t3"]]


def test_cancelled_subscription_stops_iterating() -> None:
    store = InMemoryDocumentStore()

    async def scenario() -> list[list[str]]:
        subscription = await store.subscribe("tasks")
        received = [(await subscription.__anext__()).ids]
        subscription.cancel()
        await store.set("tasks/late", {"status": "open"})
        async for snapshot in subscription:
            received.append(snapshot.ids)
        return received

    assert asyncio.run(scenario()) == [[]]
    assert store.active_subscriptions == 0


class _FlakyStore(InMemoryDocumentStore):
    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    async def _scan(self, pattern: str, filters: Sequence[Filter]) -> list[DocumentSnapshot]:
        if self.broken:
            raise RuntimeError("backend went away")
        return await super()._scan(pattern, filters)


def test_failing_live_query_delivers_subscription_error_then_ends() -> None:
    store = _FlakyStore()

    async def scenario() -> None:
        subscription = await store.subscribe("tasks")
        await subscription.__anext__()
        store.broken = True
        await store.set("tasks/t1", {"status": "open"})
        with pytest.raises(SubscriptionError):
            await subscription.__anext__()
        assert not subscription.active
        with pytest.raises(StopAsyncIteration):
            await subscription.__anext__()

    asyncio.run(scenario())
    assert store.active_subscriptions == 0


def test_batch_applies_all_writes_or_none() -> None:
    store = InMemoryDocumentStore()

    async def scenario() -> None:
        await store.set("requests/r1", {"status": "pending"})

        failing = store.batch()
        failing.set("pairs/a_b", {"members": ["a", "b"]})
        failing.update("requests/missing", {"status": "accepted"})
        with pytest.raises(DocumentNotFound):
            await failing.commit()
        assert await store.get("pairs/a_b") is None

        batch = store.batch()
        batch.update("requests/r1", {"status": "accepted", "at": SERVER_TIMESTAMP})
        batch.set("pairs/a_b", {"members": ["a", "b"], "at": SERVER_TIMESTAMP})
        await batch.commit()
        with pytest.raises(RuntimeError):
            await batch.commit()

        request = await store.get("requests/r1")
        pair = await store.get("pairs/a_b")
        assert request is not None and pair is not None
        assert request.get("status") == "accepted"
        assert request.get("at") == pair.get("at")

    asyncio.run(scenario())


def test_close_cancels_open_subscriptions() -> None:
    store = InMemoryDocumentStore()

    async def scenario() -> None:
        subscription = await store.subscribe("tasks")
        await subscription.__anext__()
        assert store.active_subscriptions == 1
        await store.close()
        assert store.active_subscriptions == 0
        with pytest.raises(StopAsyncIteration):
            await subscription.__anext__()

    asyncio.run(scenario())


class _UnevenScanStore(InMemoryDocumentStore):
    """Reads immediately but hands results back after a per-call delay."""

    def __init__(self) -> None:
        super().__init__()
        self.delays: list[float] = []

    async def _scan(self, pattern: str, filters: Sequence[Filter]) -> list[DocumentSnapshot]:
        documents = await super()._scan(pattern, filters)
        if self.delays:
            await asyncio.sleep(self.delays.pop(0))
        return documents


def test_concurrent_writes_reach_subscribers_in_commit_order() -> None:
    store = _UnevenScanStore()

    async def scenario() -> list[int]:
        sizes: list[int] = []
        async with await store.subscribe("things") as subscription:
            sizes.append(len(await subscription.__anext__()))
            store.delays = [0.05, 0.0]
            await asyncio.gather(store.create("things", {"n": 1}), store.create("things", {"n": 2}))
            sizes.append(len(await subscription.__anext__()))
            sizes.append(len(await subscription.__anext__()))
        return sizes

    assert asyncio.run(scenario()) == [0, 1, 2]
