"""Document store persisted in a single SQLAlchemy ``documents`` table."""
from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Callable, Sequence

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..database import build_engine, build_session_factory, init_db
from ..errors import DocumentNotFound, StoreUnavailable
from ..models import DocumentRow
from .base import DocumentStore, WriteOp
from .query import DocumentSnapshot, Filter, collection_matches, matches_all

logger = logging.getLogger(__name__)

_DATETIME_KEY = "$datetime"


def _encode_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return {_DATETIME_KEY: value.isoformat()}
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _decode_hook(value: dict[str, Any]) -> Any:
    if len(value) == 1 and _DATETIME_KEY in value:
        return datetime.fromisoformat(value[_DATETIME_KEY])
    return value


def encode_body(data: dict[str, Any]) -> str:
    return json.dumps(data, default=_encode_default, separators=(",", ":"))


def decode_body(body: str) -> dict[str, Any]:
    return json.loads(body or "{}", object_hook=_decode_hook)


class SqlDocumentStore(DocumentStore):
    """Blocking SQLAlchemy calls run in a worker thread; fan-out stays on the loop."""

    def __init__(
        self,
        engine: Engine,
        *,
        clock: Callable[[], datetime] | None = None,
        create_schema: bool = True,
    ) -> None:
        super().__init__(clock=clock)
        self._engine = engine
        self._session_factory: sessionmaker[Session] = build_session_factory(engine)
        if create_schema:
            init_db(engine)

    @classmethod
    def from_url(cls, database_url: str, **kwargs: Any) -> "SqlDocumentStore":
        return cls(build_engine(database_url), **kwargs)

    async def _read(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        return await asyncio.to_thread(self._read_sync, collection, doc_id)

    async def _scan(self, pattern: str, filters: Sequence[Filter]) -> list[DocumentSnapshot]:
        return await asyncio.to_thread(self._scan_sync, pattern, tuple(filters))

    async def _apply(self, ops: Sequence[WriteOp]) -> None:
        await asyncio.to_thread(self._apply_sync, list(ops))

    def _read_sync(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        try:
            with self._session_factory() as session:
                row = session.scalar(
                    select(DocumentRow).where(DocumentRow.collection == collection, DocumentRow.doc_id == doc_id)
                )
                return decode_body(row.body) if row is not None else None
        except SQLAlchemyError as exc:
            logger.exception("Failed to read %s/%s", collection, doc_id)
            raise StoreUnavailable("Failed to read document") from exc

    def _scan_sync(self, pattern: str, filters: tuple[Filter, ...]) -> list[DocumentSnapshot]:
        stmt = select(DocumentRow).order_by(DocumentRow.seq.asc())
        if "*" in pattern:
            stmt = stmt.where(DocumentRow.collection.like(pattern.replace("*", "%")))
        else:
            stmt = stmt.where(DocumentRow.collection == pattern)
        try:
            with self._session_factory() as session:
                rows = list(session.scalars(stmt))
        except SQLAlchemyError as exc:
            logger.exception("Failed to query %s", pattern)
            raise StoreUnavailable("Failed to query documents") from exc

        results: list[DocumentSnapshot] = []
        for row in rows:
            if not collection_matches(pattern, row.collection):
                continue
            data = decode_body(row.body)
            if matches_all(data, filters):
                results.append(DocumentSnapshot(id=row.doc_id, collection=row.collection, data=data))
        return results

    def _apply_sync(self, ops: list[WriteOp]) -> None:
        with self._session_factory() as session:
            try:
                for op in ops:
                    row = session.scalar(
                        select(DocumentRow).where(
                            DocumentRow.collection == op.collection,
                            DocumentRow.doc_id == op.doc_id,
                        )
                    )
                    if op.kind == "update":
                        if row is None:
                            raise DocumentNotFound(f"No document at {op.collection}/{op.doc_id}")
                        merged = decode_body(row.body)
                        merged.update(op.data)
                        row.body = encode_body(merged)
                    elif row is None:
                        session.add(DocumentRow(collection=op.collection, doc_id=op.doc_id, body=encode_body(op.data)))
                    else:
                        row.body = encode_body(op.data)
                    session.flush()
                session.commit()
            except DocumentNotFound:
                session.rollback()
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to apply %d write(s)", len(ops))
                raise StoreUnavailable("Failed to write documents") from exc

    def dispose(self) -> None:
        self._engine.dispose()


__all__ = ["SqlDocumentStore", "encode_body", "decode_body"]
