"""ORM row holding one schema-less document of the SQL document store."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from kod_social.database import Base


class DocumentRow(Base):
    __tablename__ = "documents"

    # Insertion order breaks ties between equal server timestamps.
    seq = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String(512), nullable=False, index=True)
    doc_id = Column(String(255), nullable=False)
    body = Column(Text, nullable=False, default="{}")
    stored_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    touched_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (UniqueConstraint("collection", "doc_id", name="uq_document_path"),)

    @property
    def path(self) -> str:
        return f"{self.collection}/{self.doc_id}"


__all__ = ["DocumentRow"]
