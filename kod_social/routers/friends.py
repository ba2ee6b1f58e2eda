"""Friend management API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from ..clients.identity import Identity
from ..schemas import (
    FriendRequest,
    FriendRequestAction,
    FriendRequestPayload,
    FriendsOverviewResponse,
    Friendship,
    ProfileSearchResponse,
)
from ..services import SocialClient
from .deps import get_client, get_current_identity

router = APIRouter(prefix="/friends", tags=["friends"])


@router.get("/", response_model=FriendsOverviewResponse)
async def friends_overview(
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> FriendsOverviewResponse:
    return FriendsOverviewResponse(
        friends=await client.friendships.list_friends(identity.id),
        incoming_requests=await client.friend_requests.incoming(identity.id),
        outgoing_requests=await client.friend_requests.outgoing(identity.id),
    )


@router.get("/search", response_model=ProfileSearchResponse)
async def search_candidates(
    q: str = Query(..., min_length=1, max_length=150, alias="query"),
    limit: int = Query(12, ge=1, le=50),
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> ProfileSearchResponse:
    """People the caller could still send a friend request to."""

    query = q.strip()
    results = await client.friend_requests.find_candidates(identity.id, query, limit=limit)
    return ProfileSearchResponse(query=query, results=results)


@router.post("/requests", response_model=FriendRequest, status_code=status.HTTP_201_CREATED)
async def send_friend_request_endpoint(
    payload: FriendRequestPayload,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> FriendRequest:
    return await client.friend_requests.send(identity.id, payload.recipient_id)


@router.post("/requests/{request_id}/accept", response_model=Friendship)
async def accept_friend_request(
    request_id: str,
    payload: FriendRequestAction,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> Friendship:
    return await client.friend_requests.accept(request_id, payload.sender_id, recipient_id=identity.id)


@router.post("/requests/{request_id}/reject", response_model=FriendRequest)
async def reject_friend_request(
    request_id: str,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> FriendRequest:
    return await client.friend_requests.reject(request_id, recipient_id=identity.id)


@router.get("/with/{user_id}", response_model=dict)
async def friendship_status(
    user_id: str,
    identity: Identity = Depends(get_current_identity),
    client: SocialClient = Depends(get_client),
) -> dict[str, object]:
    return {
        "user_id": user_id,
        "are_friends": await client.friendships.are_friends(identity.id, user_id),
    }


__all__ = ["router"]
