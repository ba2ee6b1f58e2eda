"""Convenience exports for service layer."""
from .chat_service import ChatService
from .client import SocialClient, build_client, build_store
from .friend_request_service import FriendRequestService
from .friendship_service import FriendshipRegistry
from .live import LiveView
from .pairing import canonical_pair_id, pairs_with, require_user_id
from .profile_service import ProfileRegistry, profile_collection, profile_path
from .rating_service import RatingService, summarize
from .wall_service import WallService

__all__ = [
    "ChatService",
    "SocialClient",
    "build_client",
    "build_store",
    "FriendRequestService",
    "FriendshipRegistry",
    "LiveView",
    "canonical_pair_id",
    "pairs_with",
    "require_user_id",
    "ProfileRegistry",
    "profile_collection",
    "profile_path",
    "RatingService",
    "summarize",
    "WallService",
]
