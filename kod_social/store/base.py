"""Document store contract with live subscriptions and server timestamps."""
from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Literal, Sequence

from ..errors import SubscriptionError
from .query import (
    DocumentSnapshot,
    Filter,
    QuerySnapshot,
    collection_matches,
    snapshot_signature,
    split_path,
    validate_collection,
)

logger = logging.getLogger(__name__)


class _ServerTimestamp:
    """Placeholder replaced by the store's own clock when a write is applied."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"

    def __deepcopy__(self, memo: dict[int, Any]) -> "_ServerTimestamp":
        return self


SERVER_TIMESTAMP = _ServerTimestamp()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WriteOp:
    kind: Literal["create", "set", "update"]
    collection: str
    doc_id: str
    data: dict[str, Any]


class Subscription:
    """Cancelable stream of query snapshots for one standing query."""

    def __init__(self, store: "DocumentStore", collection: str, filters: Sequence[Filter]) -> None:
        self.collection = collection
        self.filters = tuple(filters)
        self._store = store
        self._queue: asyncio.Queue[QuerySnapshot | BaseException | None] = asyncio.Queue()
        self._last_signature: str | None = None
        self._finished = False

    @property
    def active(self) -> bool:
        return not self._finished

    def _push(self, snapshot: QuerySnapshot) -> None:
        if self._finished or snapshot.signature == self._last_signature:
            return
        self._last_signature = snapshot.signature
        self._queue.put_nowait(snapshot)

    def _fail(self, error: BaseException) -> None:
        if self._finished:
            return
        self._store._release(self)
        self._queue.put_nowait(error)

    def cancel(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._store._release(self)
        self._queue.put_nowait(None)

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> QuerySnapshot:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            self._finished = True
            if isinstance(item, SubscriptionError):
                raise item
            raise SubscriptionError(str(item) or type(item).__name__) from item
        return item

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.cancel()


class WriteBatch:
    """Collects writes and applies them in one atomic store call."""

    def __init__(self, store: "DocumentStore") -> None:
        self._store = store
        self._ops: list[WriteOp] = []
        self._committed = False

    def create(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = self._store.new_id()
        self._ops.append(WriteOp("create", validate_collection(collection), doc_id, dict(data)))
        return doc_id

    def set(self, path: str, data: dict[str, Any]) -> "WriteBatch":
        collection, doc_id = split_path(path)
        self._ops.append(WriteOp("set", collection, doc_id, dict(data)))
        return self

    def update(self, path: str, data: dict[str, Any]) -> "WriteBatch":
        collection, doc_id = split_path(path)
        self._ops.append(WriteOp("update", collection, doc_id, dict(data)))
        return self

    async def commit(self) -> None:
        if self._committed:
            raise RuntimeError("Batch already committed")
        self._committed = True
        if self._ops:
            await self._store._commit(self._ops)


class DocumentStore(ABC):
    """Collection/document database with filtered queries and live subscriptions.

    Backends implement three primitives: ``_read``, ``_scan`` and ``_apply``.
    Server timestamps, subscription fan-out and path handling live here.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or _utcnow
        self._last_timestamp: datetime | None = None
        self._subscriptions: list[Subscription] = []
        self._lock: asyncio.Lock | None = None
        self._lock_loop: asyncio.AbstractEventLoop | None = None

    @abstractmethod
    async def _read(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Return a copy of the stored document data or ``None``."""

    @abstractmethod
    async def _scan(self, pattern: str, filters: Sequence[Filter]) -> list[DocumentSnapshot]:
        """Return matching documents in insertion order."""

    @abstractmethod
    async def _apply(self, ops: Sequence[WriteOp]) -> None:
        """Apply all operations atomically or none of them."""

    def new_id(self) -> str:
        return uuid.uuid4().hex

    def server_now(self) -> datetime:
        """Strictly increasing timestamp used for ``SERVER_TIMESTAMP``."""

        now = self._clock()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now

    def _resolve(self, value: Any, now: datetime) -> Any:
        if value is SERVER_TIMESTAMP:
            return now
        if isinstance(value, dict):
            return {key: self._resolve(item, now) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._resolve(item, now) for item in value]
        return copy.deepcopy(value)

    def _write_lock(self) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if self._lock is None or self._lock_loop is not loop:
            self._lock = asyncio.Lock()
            self._lock_loop = loop
        return self._lock

    async def _commit(self, ops: Sequence[WriteOp]) -> None:
        # Writes and their fan-out run one at a time so every subscriber sees
        # snapshots in commit order.
        async with self._write_lock():
            now = self.server_now()
            resolved = [WriteOp(op.kind, op.collection, op.doc_id, self._resolve(op.data, now)) for op in ops]
            await self._apply(resolved)
            await self._notify({op.collection for op in resolved})

    async def create(self, collection: str, data: dict[str, Any]) -> str:
        """Insert a document under a fresh id and return the id."""

        doc_id = self.new_id()
        await self._commit([WriteOp("create", validate_collection(collection), doc_id, dict(data))])
        return doc_id

    async def set(self, path: str, data: dict[str, Any]) -> None:
        """Create or overwrite the document at ``path``."""

        collection, doc_id = split_path(path)
        await self._commit([WriteOp("set", collection, doc_id, dict(data))])

    async def update(self, path: str, data: dict[str, Any]) -> None:
        """Merge top-level fields into an existing document."""

        collection, doc_id = split_path(path)
        await self._commit([WriteOp("update", collection, doc_id, dict(data))])

    async def get(self, path: str) -> DocumentSnapshot | None:
        collection, doc_id = split_path(path)
        data = await self._read(collection, doc_id)
        if data is None:
            return None
        return DocumentSnapshot(id=doc_id, collection=collection, data=data)

    async def query(self, collection: str, filters: Iterable[Filter] = ()) -> QuerySnapshot:
        pattern = validate_collection(collection)
        documents = tuple(await self._scan(pattern, tuple(filters)))
        return QuerySnapshot(
            documents=documents,
            read_time=self._clock(),
            signature=snapshot_signature(documents),
        )

    async def subscribe(self, collection: str, filters: Iterable[Filter] = ()) -> Subscription:
        """Open a live query; the current result set is the first snapshot."""

        subscription = Subscription(self, validate_collection(collection), tuple(filters))
        # Registered before the first read so a concurrent write is never missed.
        self._subscriptions.append(subscription)
        try:
            initial = await self.query(subscription.collection, subscription.filters)
        except Exception:
            self._release(subscription)
            raise
        if subscription._last_signature is None:
            subscription._push(initial)
        return subscription

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    @property
    def active_subscriptions(self) -> int:
        return len(self._subscriptions)

    def _is_registered(self, subscription: Subscription) -> bool:
        return any(item is subscription for item in self._subscriptions)

    def _release(self, subscription: Subscription) -> None:
        self._subscriptions = [item for item in self._subscriptions if item is not subscription]

    async def _notify(self, collections: set[str]) -> None:
        for subscription in list(self._subscriptions):
            if not any(collection_matches(subscription.collection, name) for name in collections):
                continue
            try:
                snapshot = await self.query(subscription.collection, subscription.filters)
            except Exception as exc:
                logger.warning("Live query on %s failed: %s", subscription.collection, exc)
                subscription._fail(exc)
                continue
            subscription._push(snapshot)

    async def close(self) -> None:
        if self._subscriptions:
            logger.warning("Closing store with %d live subscription(s) still open", len(self._subscriptions))
        for subscription in list(self._subscriptions):
            subscription.cancel()


__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentStore",
    "Subscription",
    "WriteBatch",
    "WriteOp",
]
