"""Pydantic schemas for wall posts."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .base import StoredRecord

Visibility = Literal["public", "private"]


class WallPost(StoredRecord):
    author_id: str
    author_name: str
    content: str
    visibility: Visibility = "public"
    created_at: datetime | None = None


class WallPostCreate(BaseModel):
    """Payload used by API clients when writing on their own wall."""

    content: str = Field(..., max_length=2000)
    visibility: str = "public"


class WallFeedResponse(BaseModel):
    """Envelope used when returning a wall."""

    author_id: str
    items: list[WallPost]


__all__ = ["Visibility", "WallPost", "WallPostCreate", "WallFeedResponse"]
