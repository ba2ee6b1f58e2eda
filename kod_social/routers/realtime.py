"""WebSocket endpoints that push live views of the social graph."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from ..clients.identity import Identity
from ..errors import SocialError
from ..services import LiveView, SocialClient
from .deps import get_client, identity_from_connection

router = APIRouter()
logger = logging.getLogger(__name__)

ViewFactory = Callable[[SocialClient, Identity], Awaitable[LiveView[Any]]]


async def _send(websocket: WebSocket, payload: dict[str, Any]) -> None:
    await websocket.send_text(json.dumps(jsonable_encoder(payload), default=str))


async def _pump(websocket: WebSocket, view: LiveView[Any]) -> None:
    """Forward every value of ``view`` until it is cancelled or fails."""

    async for value in view:
        await _send(websocket, {"type": "snapshot", "view": view.name, "data": value})
    if view.error is not None:
        await _send(websocket, {"type": "error", "view": view.name, "detail": str(view.error)})


async def _serve_view(websocket: WebSocket, open_view: ViewFactory) -> None:
    identity = identity_from_connection(websocket)
    if identity is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    client = get_client(websocket)
    await websocket.accept()
    try:
        await client.profiles.ensure_profile(identity)
        view = await open_view(client, identity)
    except SocialError as exc:
        await _send(websocket, {"type": "error", "code": exc.code, "detail": exc.message})
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        return

    logger.info("Live view %s opened for %s", view.name, identity.id)
    await _send(websocket, {"type": "ready", "view": view.name})
    pump = asyncio.create_task(_pump(websocket, view))
    try:
        while True:
            try:
                raw = await websocket.receive_text()
            except WebSocketDisconnect:
                break
            if raw.strip().lower() == "ping":
                await _send(websocket, {"type": "pong", "view": view.name})
    finally:
        view.cancel()
        pump.cancel()
        await asyncio.gather(pump, return_exceptions=True)
        logger.info("Live view %s closed for %s", view.name, identity.id)


@router.websocket("/ws/friends")
async def friends_socket(websocket: WebSocket) -> None:
    async def _open(client: SocialClient, identity: Identity) -> LiveView[Any]:
        return await client.friendships.watch_friends(identity.id)

    await _serve_view(websocket, _open)


@router.websocket("/ws/friends/requests")
async def friend_requests_socket(websocket: WebSocket) -> None:
    async def _open(client: SocialClient, identity: Identity) -> LiveView[Any]:
        return await client.friend_requests.watch_incoming(identity.id)

    await _serve_view(websocket, _open)


@router.websocket("/ws/profiles/me")
async def profile_socket(websocket: WebSocket) -> None:
    async def _open(client: SocialClient, identity: Identity) -> LiveView[Any]:
        return await client.profiles.watch_profile(identity.id)

    await _serve_view(websocket, _open)


@router.websocket("/ws/wall/{author_id}")
async def wall_socket(websocket: WebSocket, author_id: str) -> None:
    async def _open(client: SocialClient, identity: Identity) -> LiveView[Any]:
        return await client.wall.watch_posts_for_viewer(author_id, identity.id)

    await _serve_view(websocket, _open)


@router.websocket("/ws/chats/{other_id}")
async def chat_socket(websocket: WebSocket, other_id: str) -> None:
    async def _open(client: SocialClient, identity: Identity) -> LiveView[Any]:
        return await client.chat.subscribe(client.chat.channel_id(identity.id, other_id))

    await _serve_view(websocket, _open)


@router.websocket("/ws/ratings/{target_id}")
async def ratings_socket(websocket: WebSocket, target_id: str) -> None:
    async def _open(client: SocialClient, identity: Identity) -> LiveView[Any]:
        return await client.ratings.watch_aggregate(target_id)

    await _serve_view(websocket, _open)


__all__ = ["router"]
