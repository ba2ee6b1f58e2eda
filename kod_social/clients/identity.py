"""Identity provider contract: who is acting, and session change notifications."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Mapping

logger = logging.getLogger(__name__)

SessionListener = Callable[["Identity | None"], None]


@dataclass(frozen=True)
class Identity:
    """Opaque, stable user identifier plus the attributes the provider exposes."""

    id: str
    email: str | None = None
    display_name: str | None = None
    photo_url: str | None = None
    is_anonymous: bool = False


class IdentityProvider(ABC):
    def __init__(self) -> None:
        self._listeners: list[SessionListener] = []

    @abstractmethod
    def current_identity(self) -> Identity | None:
        """Return the signed-in identity, if any."""

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unregisters it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, identity: Identity | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(identity)
            except Exception:
                logger.exception("Session listener failed")


class SessionIdentityProvider(IdentityProvider):
    """Holds one signed-in identity in process, as a client-side SDK session does."""

    def __init__(self, identity: Identity | None = None) -> None:
        super().__init__()
        self._identity = identity

    def current_identity(self) -> Identity | None:
        return self._identity

    def sign_in(self, identity: Identity) -> None:
        self._identity = identity
        logger.info("Session started for %s", identity.id)
        self._emit(identity)

    def sign_out(self) -> None:
        if self._identity is None:
            return
        logger.info("Session ended for %s", self._identity.id)
        self._identity = None
        self._emit(None)


class HeaderIdentityProvider(IdentityProvider):
    """Reads the identity an upstream proxy has already authenticated."""

    ID_HEADER = "x-user-id"
    EMAIL_HEADER = "x-user-email"
    NAME_HEADER = "x-user-name"
    PHOTO_HEADER = "x-user-photo"

    def current_identity(self) -> Identity | None:
        # Header identities only exist per request.
        return None

    def from_headers(self, headers: Mapping[str, str]) -> Identity | None:
        lowered = {key.lower(): value for key, value in headers.items()}
        user_id = (lowered.get(self.ID_HEADER) or "").strip()
        if not user_id:
            return None
        email = (lowered.get(self.EMAIL_HEADER) or "").strip() or None
        return Identity(
            id=user_id,
            email=email,
            display_name=(lowered.get(self.NAME_HEADER) or "").strip() or None,
            photo_url=(lowered.get(self.PHOTO_HEADER) or "").strip() or None,
            is_anonymous=email is None,
        )


__all__ = [
    "Identity",
    "IdentityProvider",
    "SessionIdentityProvider",
    "HeaderIdentityProvider",
]
