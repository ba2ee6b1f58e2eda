"""In-process document store used by tests and local development."""
from __future__ import annotations

import copy
from datetime import datetime
from typing import Any, Callable, Sequence

from ..errors import DocumentNotFound
from .base import DocumentStore, WriteOp
from .query import DocumentSnapshot, Filter, collection_matches, matches_all


class InMemoryDocumentStore(DocumentStore):
    """Keeps collections in insertion-ordered dicts keyed by collection path."""

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        super().__init__(clock=clock)
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def _read(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        data = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    async def _scan(self, pattern: str, filters: Sequence[Filter]) -> list[DocumentSnapshot]:
        results: list[DocumentSnapshot] = []
        for name, documents in self._collections.items():
            if not collection_matches(pattern, name):
                continue
            for doc_id, data in documents.items():
                if matches_all(data, filters):
                    results.append(DocumentSnapshot(id=doc_id, collection=name, data=copy.deepcopy(data)))
        return results

    async def _apply(self, ops: Sequence[WriteOp]) -> None:
        for op in ops:
            if op.kind == "update" and op.doc_id not in self._collections.get(op.collection, {}):
                raise DocumentNotFound(f"No document at {op.collection}/{op.doc_id}")
        for op in ops:
            documents = self._collections.setdefault(op.collection, {})
            if op.kind == "update":
                documents[op.doc_id].update(op.data)
            else:
                documents[op.doc_id] = dict(op.data)

    def document_count(self, collection: str | None = None) -> int:
        if collection is None:
            return sum(len(documents) for documents in self._collections.values())
        return len(self._collections.get(collection, {}))


__all__ = ["InMemoryDocumentStore"]
