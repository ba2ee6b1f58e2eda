"""Paths, filters and snapshots shared by every document store backend."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Iterator, Sequence

FILTER_OPERATORS = ("==", "!=", "in", "array-contains")

_MISSING = object()


def split_path(path: str) -> tuple[str, str]:
    """Split ``collection/.../doc_id`` into its collection path and document id."""

    segments = [segment for segment in path.strip("/").split("/") if segment]
    if len(segments) < 2 or len(segments) % 2:
        raise ValueError(f"Not a document path: {path!r}")
    return "/".join(segments[:-1]), segments[-1]


def validate_collection(collection: str) -> str:
    segments = [segment for segment in collection.strip("/").split("/") if segment]
    if not segments or len(segments) % 2 == 0:
        raise ValueError(f"Not a collection path: {collection!r}")
    return "/".join(segments)


def collection_matches(pattern: str, collection: str) -> bool:
    """Match a collection path against a pattern where ``*`` stands for one segment."""

    wanted = pattern.split("/")
    actual = collection.split("/")
    if len(wanted) != len(actual):
        return False
    return all(part == "*" or part == value for part, value in zip(wanted, actual))


def _lookup(data: dict[str, Any], dotted: str) -> Any:
    current: Any = data
    for part in dotted.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


@dataclass(frozen=True)
class Filter:
    """A single ``field op value`` clause; clauses in a query are ANDed."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter operator: {self.op!r}")
        if self.op == "in" and not isinstance(self.value, (list, tuple, set, frozenset)):
            raise ValueError("'in' filters require a collection value")

    def matches(self, data: dict[str, Any]) -> bool:
        found = _lookup(data, self.field)
        if self.op == "==":
            return found is not _MISSING and found == self.value
        if self.op == "!=":
            return found is not _MISSING and found != self.value
        if self.op == "in":
            return found is not _MISSING and found in self.value
        return isinstance(found, list) and self.value in found


def where(field_path: str, op: str, value: Any) -> Filter:
    return Filter(field_path, op, value)


def matches_all(data: dict[str, Any], filters: Iterable[Filter]) -> bool:
    return all(clause.matches(data) for clause in filters)


@dataclass(frozen=True)
class DocumentSnapshot:
    """Point-in-time copy of one stored document."""

    id: str
    collection: str
    data: dict[str, Any]

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.id}"

    def get(self, field_path: str, default: Any = None) -> Any:
        found = _lookup(self.data, field_path)
        return default if found is _MISSING else found

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, **self.data}


@dataclass(frozen=True)
class QuerySnapshot:
    """Ordered result set of a query at one moment."""

    documents: tuple[DocumentSnapshot, ...] = ()
    read_time: datetime | None = None
    signature: str = field(default="", compare=False)

    def __iter__(self) -> Iterator[DocumentSnapshot]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def empty(self) -> bool:
        return not self.documents

    @property
    def ids(self) -> list[str]:
        return [document.id for document in self.documents]


def snapshot_signature(documents: Sequence[DocumentSnapshot]) -> str:
    """Stable fingerprint used to suppress pushes that change nothing."""

    return json.dumps(
        [[document.path, document.data] for document in documents],
        sort_keys=True,
        default=str,
    )


__all__ = [
    "FILTER_OPERATORS",
    "Filter",
    "where",
    "matches_all",
    "split_path",
    "validate_collection",
    "collection_matches",
    "DocumentSnapshot",
    "QuerySnapshot",
    "snapshot_signature",
]
