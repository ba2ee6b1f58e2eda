"""Collection paths and fixed values shared across services."""
from __future__ import annotations

PROFILE_DOCUMENT_ID = "data"
PROFILE_COLLECTION_TEMPLATE = "users/{user_id}/profile"
PROFILE_DIRECTORY = "users/*/profile"

FRIEND_REQUESTS = "friendRequests"
FRIENDSHIPS = "friendships"
WALL_POSTS = "wallPosts"
CHATS = "chats"
RATINGS = "ratings"

DEFAULT_SEPARATOR = "_"
DEFAULT_PLACEHOLDER_NAME = "Unknown User"
ANONYMOUS_NAME = "Anonymous"

MIN_SCORE = 1
MAX_SCORE = 5
VISIBILITIES = ("public", "private")
