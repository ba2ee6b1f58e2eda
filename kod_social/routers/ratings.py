"""Peer rating API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..clients.identity import Identity
from ..schemas import Rating, RatingCreate, RatingSummary
from ..services import SocialClient
from .deps import get_client, get_current_identity

router = APIRouter(prefix="/ratings", tags=["ratings"])


@router.post("/", response_model=Rating, status_code=status.HTTP_201_CREATED)
async def rate_user(
    payload: RatingCreate,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> Rating:
    return await client.ratings.rate(identity.id, payload.target_id, payload.score, payload.comment)


@router.get("/{target_id}", response_model=RatingSummary)
async def rating_summary(
    target_id: str,
    client: SocialClient = Depends(get_client),
) -> RatingSummary:
    return await client.ratings.aggregate(target_id)


@router.get("/{target_id}/items", response_model=list[Rating])
async def rating_items(
    target_id: str,
    client: SocialClient = Depends(get_client),
) -> list[Rating]:
    return await client.ratings.ratings_for(target_id)


__all__ = ["router"]
