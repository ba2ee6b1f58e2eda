"""Shared FastAPI dependencies: the social client and the acting identity."""
from __future__ import annotations

from fastapi import Depends, HTTPException, status
from fastapi.requests import HTTPConnection

from ..clients.identity import HeaderIdentityProvider, Identity
from ..services import SocialClient

_header_identities = HeaderIdentityProvider()


def get_client(connection: HTTPConnection) -> SocialClient:
    return connection.app.state.social_client


def identity_from_connection(connection: HTTPConnection) -> Identity | None:
    """Identity forwarded by the upstream proxy, or ``None`` for anonymous callers."""

    return _header_identities.from_headers(connection.headers)


async def get_optional_identity(
    identity: Identity | None = Depends(identity_from_connection),
    client: SocialClient = Depends(get_client),
) -> Identity | None:
    if identity is not None:
        await client.profiles.ensure_profile(identity)
    return identity


async def get_current_identity(
    identity: Identity | None = Depends(get_optional_identity),
) -> Identity:
    """Resolve the acting identity; its profile exists once this returns."""

    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    return identity


__all__ = ["get_client", "identity_from_connection", "get_optional_identity", "get_current_identity"]
