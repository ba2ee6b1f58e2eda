"""Peer ratings: one write-once score per (rater, target), averaged on read."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from ..constants import MAX_SCORE, MIN_SCORE, RATINGS
from ..errors import DuplicateRating, InvalidScore, SelfRating, StoreUnavailable
from ..schemas import Rating, RatingSummary, records_from
from ..store import SERVER_TIMESTAMP, DocumentSnapshot, DocumentStore, QuerySnapshot, where
from .live import LiveView
from .pairing import require_user_id

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def valid_score(score: Any) -> bool:
    return isinstance(score, int) and not isinstance(score, bool) and MIN_SCORE <= score <= MAX_SCORE


def summarize(target_id: str, documents: Iterable[DocumentSnapshot]) -> RatingSummary:
    """Count and one-decimal average over the documents that validate as ratings."""

    ratings = records_from(documents, Rating)
    count = len(ratings)
    total = sum((Decimal(rating.score) for rating in ratings), Decimal(0))
    if count == 0:
        return RatingSummary(target_id=target_id, count=0, average=None)
    average = (total / count).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    return RatingSummary(target_id=target_id, count=count, average=float(average))


class RatingService:
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def existing(self, rater_id: str, target_id: str) -> list[Rating]:
        snapshot = await self._store.query(
            RATINGS,
            [where("rater_id", "==", rater_id), where("target_id", "==", target_id)],
        )
        return records_from(snapshot, Rating)

    async def rate(self, rater_id: str, target_id: str, score: Any, comment: str | None = None) -> Rating:
        rater_id = require_user_id(rater_id, label="rater id")
        target_id = require_user_id(target_id, label="target id")
        if rater_id == target_id:
            raise SelfRating()
        if not valid_score(score):
            raise InvalidScore()

        if await self.existing(rater_id, target_id):
            logger.info("Rating %s -> %s rejected: already rated", rater_id, target_id)
            raise DuplicateRating()

        rating_id = await self._store.create(
            RATINGS,
            {
                "rater_id": rater_id,
                "target_id": target_id,
                "score": score,
                "comment": (comment or "").strip(),
                "created_at": SERVER_TIMESTAMP,
            },
        )
        logger.info("Rating %s stored: %s rated %s with %d", rating_id, rater_id, target_id, score)
        snapshot = await self._store.get(f"{RATINGS}/{rating_id}")
        if snapshot is None:
            raise StoreUnavailable("Rating was not persisted")
        return Rating.from_document(snapshot)

    def _target_filters(self, target_id: str) -> list:
        return [where("target_id", "==", require_user_id(target_id, label="target id"))]

    async def ratings_for(self, target_id: str) -> list[Rating]:
        snapshot = await self._store.query(RATINGS, self._target_filters(target_id))
        ratings = records_from(snapshot, Rating)
        return sorted(ratings, key=lambda rating: rating.created_at or _EPOCH, reverse=True)

    async def aggregate(self, target_id: str) -> RatingSummary:
        snapshot = await self._store.query(RATINGS, self._target_filters(target_id))
        return summarize(target_id, snapshot)

    async def watch_aggregate(self, target_id: str) -> LiveView[RatingSummary]:
        """Recomputes the whole summary client-side on every snapshot."""

        subscription = await self._store.subscribe(RATINGS, self._target_filters(target_id))

        async def _transform(snapshot: QuerySnapshot) -> RatingSummary:
            return summarize(target_id, snapshot)

        return LiveView(subscription, _transform, name=f"ratings:{target_id}")


__all__ = ["RatingService", "summarize", "valid_score"]
