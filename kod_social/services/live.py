"""Typed live views over store subscriptions."""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, Generic, TypeVar

from ..errors import SubscriptionError
from ..store import QuerySnapshot, Subscription

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LiveView(Generic[T]):
    """Re-derives a value from every pushed snapshot until cancelled.

    When the subscription or the transform fails the view stops and keeps the
    last good value in ``latest``.
    """

    def __init__(
        self,
        subscription: Subscription,
        transform: Callable[[QuerySnapshot], Awaitable[T]],
        *,
        name: str = "live view",
    ) -> None:
        self.name = name
        self.latest: T | None = None
        self.error: BaseException | None = None
        self._subscription = subscription
        self._transform = transform

    @property
    def active(self) -> bool:
        return self.error is None and self._subscription.active

    def __aiter__(self) -> "LiveView[T]":
        return self

    async def __anext__(self) -> T:
        if self.error is not None:
            raise StopAsyncIteration
        try:
            snapshot = await self._subscription.__anext__()
        except SubscriptionError as exc:
            self._stop(exc)
            raise StopAsyncIteration
        try:
            value = await self._transform(snapshot)
        except Exception as exc:
            self._stop(exc)
            raise StopAsyncIteration
        self.latest = value
        return value

    def _stop(self, error: BaseException) -> None:
        self.error = error
        logger.warning("%s stopped updating: %s", self.name, error)
        self._subscription.cancel()

    def cancel(self) -> None:
        self._subscription.cancel()

    async def __aenter__(self) -> "LiveView[T]":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.cancel()


__all__ = ["LiveView"]
