"""Schema exports."""
from .base import StoredRecord, records_from
from .friends import (
    FriendRequest,
    FriendRequestAction,
    FriendRequestPayload,
    FriendsOverviewResponse,
    FriendSummary,
    Friendship,
    IncomingFriendRequest,
)
from .messages import ChatMessage, ConversationResponse, MessageSendRequest
from .posts import Visibility, WallFeedResponse, WallPost, WallPostCreate
from .profiles import (
    AvatarUploadResponse,
    BioDraftResponse,
    Profile,
    ProfileSearchResponse,
    ProfileUpdateRequest,
    SocialLinks,
    SocialLinksUpdate,
    WallVisibilityUpdate,
)
from .ratings import Rating, RatingCreate, RatingSummary

__all__ = [
    "StoredRecord",
    "records_from",
    "FriendRequest",
    "FriendRequestAction",
    "FriendRequestPayload",
    "FriendsOverviewResponse",
    "FriendSummary",
    "Friendship",
    "IncomingFriendRequest",
    "ChatMessage",
    "ConversationResponse",
    "MessageSendRequest",
    "Visibility",
    "WallFeedResponse",
    "WallPost",
    "WallPostCreate",
    "AvatarUploadResponse",
    "BioDraftResponse",
    "Profile",
    "ProfileSearchResponse",
    "ProfileUpdateRequest",
    "SocialLinks",
    "SocialLinksUpdate",
    "WallVisibilityUpdate",
    "Rating",
    "RatingCreate",
    "RatingSummary",
]
