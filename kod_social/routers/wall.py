"""Wall post API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ..clients.identity import Identity
from ..schemas import WallFeedResponse, WallPost, WallPostCreate
from ..services import SocialClient
from .deps import get_client, get_current_identity, get_optional_identity

router = APIRouter(prefix="/wall", tags=["wall"])


@router.post("/me", response_model=WallPost, status_code=status.HTTP_201_CREATED)
async def create_wall_post(
    payload: WallPostCreate,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> WallPost:
    return await client.wall.add_post(identity.id, None, payload.content, payload.visibility)


@router.get("/{author_id}", response_model=WallFeedResponse)
async def read_wall(
    author_id: str,
    identity: Identity | None = Depends(get_optional_identity),
    client: SocialClient = Depends(get_client),
) -> WallFeedResponse:
    """Posts on ``author_id``'s wall as the caller is allowed to see them."""

    viewer_id = identity.id if identity is not None else None
    items = await client.wall.posts_for_viewer(author_id, viewer_id)
    return WallFeedResponse(author_id=author_id, items=items)


__all__ = ["router"]
