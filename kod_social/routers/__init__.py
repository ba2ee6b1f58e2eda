"""Aggregate router exports."""
from .chats import router as chats_router
from .friends import router as friends_router
from .profiles import router as profiles_router
from .ratings import router as ratings_router
from .realtime import router as realtime_router
from .wall import router as wall_router

__all__ = [
    "chats_router",
    "friends_router",
    "profiles_router",
    "ratings_router",
    "realtime_router",
    "wall_router",
]
