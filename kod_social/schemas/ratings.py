"""Schemas for peer ratings."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, StrictInt

from .base import StoredRecord


class Rating(StoredRecord):
    rater_id: str
    target_id: str
    score: StrictInt = Field(..., ge=1, le=5)
    comment: str = ""
    created_at: datetime | None = None


class RatingCreate(BaseModel):
    target_id: str = Field(..., min_length=1, max_length=128)
    score: StrictInt
    comment: str = Field(default="", max_length=1000)


class RatingSummary(BaseModel):
    target_id: str
    count: int = 0
    average: float | None = None


__all__ = ["Rating", "RatingCreate", "RatingSummary"]
