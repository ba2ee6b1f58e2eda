"""Schemas for friend requests and friendships."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .base import StoredRecord

RequestStatus = Literal["pending", "accepted", "rejected"]


class FriendRequest(StoredRecord):
    sender_id: str
    recipient_id: str
    status: RequestStatus = "pending"
    created_at: datetime | None = None
    responded_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"


class IncomingFriendRequest(FriendRequest):
    sender_name: str


class Friendship(StoredRecord):
    members: list[str] = Field(..., min_length=2, max_length=2)
    established_at: datetime | None = None

    def other_member(self, user_id: str) -> str | None:
        others = [member for member in self.members if member != user_id]
        return others[0] if others else None


class FriendSummary(BaseModel):
    id: str = Field(..., description="Friend user ID")
    name: str
    avatar_url: str = ""
    found: bool = True


class FriendRequestPayload(BaseModel):
    recipient_id: str = Field(..., min_length=1, max_length=128)


class FriendRequestAction(BaseModel):
    sender_id: str = Field(..., min_length=1, max_length=128)


class FriendsOverviewResponse(BaseModel):
    friends: list[FriendSummary]
    incoming_requests: list[IncomingFriendRequest]
    outgoing_requests: list[FriendRequest]


__all__ = [
    "RequestStatus",
    "FriendRequest",
    "IncomingFriendRequest",
    "Friendship",
    "FriendSummary",
    "FriendRequestPayload",
    "FriendRequestAction",
    "FriendsOverviewResponse",
]
