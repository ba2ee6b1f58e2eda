"""Profile API routes backed by the document store."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, UploadFile

from ..clients.identity import Identity
from ..schemas import (
    AvatarUploadResponse,
    BioDraftResponse,
    Profile,
    ProfileSearchResponse,
    ProfileUpdateRequest,
    SocialLinksUpdate,
    WallVisibilityUpdate,
)
from ..services import SocialClient
from .deps import get_client, get_current_identity

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/me", response_model=Profile)
async def my_profile(
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> Profile:
    return await client.profiles.require_profile(identity.id)


@router.put("/me", response_model=Profile)
async def update_my_profile(
    payload: ProfileUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> Profile:
    return await client.profiles.update_profile(identity.id, payload)


@router.put("/me/social-links", response_model=Profile)
async def update_my_social_links(
    payload: SocialLinksUpdate,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> Profile:
    return await client.profiles.update_social_links(identity.id, payload.to_links())


@router.put("/me/wall-visibility", response_model=Profile)
async def update_my_wall_visibility(
    payload: WallVisibilityUpdate,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> Profile:
    return await client.profiles.set_wall_visibility(identity.id, payload.is_public_wall)


@router.post("/me/avatar", response_model=AvatarUploadResponse)
async def upload_my_avatar(
    file: UploadFile = File(...),
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> AvatarUploadResponse:
    """Store a new profile picture and return its public URL."""

    data = await file.read()
    url = await client.profiles.upload_avatar(
        identity.id,
        file.filename or "avatar",
        data,
        file.content_type,
    )
    return AvatarUploadResponse(url=url)


@router.post("/me/bio/generate", response_model=BioDraftResponse)
async def generate_my_bio(
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> BioDraftResponse:
    """Draft a bio from the caller's interests; saving it is a separate PUT."""

    return BioDraftResponse(bio=await client.profiles.generate_bio(identity.id))


@router.get("/search", response_model=ProfileSearchResponse)
async def search_profiles(
    q: str = Query(..., min_length=1, max_length=150, alias="query"),
    limit: int = Query(20, ge=1, le=50),
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> ProfileSearchResponse:
    query = q.strip()
    results = await client.profiles.search_users(query, limit=limit)
    return ProfileSearchResponse(query=query, results=results)


@router.get("/{user_id}", response_model=Profile)
async def retrieve_profile(
    user_id: str,
    client: SocialClient = Depends(get_client),
) -> Profile:
    return await client.profiles.require_profile(user_id)


__all__ = ["router"]
