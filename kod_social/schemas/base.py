"""Shared base for records read back from the document store."""
from __future__ import annotations

import logging
from typing import Iterable, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors import DocumentValidationError
from ..store import DocumentSnapshot

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound="StoredRecord")


class StoredRecord(BaseModel):
    """A typed entity; documents that do not fit are rejected, never trusted."""

    model_config = ConfigDict(extra="ignore")

    id: str

    @classmethod
    def record_id(cls, snapshot: DocumentSnapshot) -> str:
        return snapshot.id

    @classmethod
    def from_document(cls: type[RecordT], snapshot: DocumentSnapshot) -> RecordT:
        try:
            return cls.model_validate({**snapshot.data, "id": cls.record_id(snapshot)})
        except ValidationError as exc:
            raise DocumentValidationError(f"{snapshot.path} is not a valid {cls.__name__}") from exc


def records_from(documents: Iterable[DocumentSnapshot], record_type: type[RecordT]) -> list[RecordT]:
    """Deserialize a result set, dropping documents that do not validate."""

    records: list[RecordT] = []
    for document in documents:
        try:
            records.append(record_type.from_document(document))
        except DocumentValidationError as exc:
            logger.warning("Skipping malformed document: %s", exc)
    return records


__all__ = ["StoredRecord", "records_from"]
