"""Identifier helpers for order-independent pairs of users."""
from __future__ import annotations

from ..constants import DEFAULT_SEPARATOR
from ..errors import InvalidOperation


def require_user_id(value: str | None, *, label: str = "user id") -> str:
    candidate = (value or "").strip()
    if not candidate:
        raise InvalidOperation(f"A {label} is required")
    if "/" in candidate:
        raise InvalidOperation(f"Invalid {label}: {candidate!r}")
    return candidate


def canonical_pair_id(first: str, second: str, separator: str = DEFAULT_SEPARATOR) -> str:
    """Sort both ids and join them, so ``(a, b)`` and ``(b, a)`` give the same key.

    An id containing the separator could make two different pairs share a key,
    so it cannot take part in a pair.
    """

    for user_id in (first, second):
        if separator in user_id:
            raise InvalidOperation(f"User id {user_id!r} contains the pair separator {separator!r}")
    return separator.join(sorted((first, second)))


def pairs_with(first: str, second: str, separator: str = DEFAULT_SEPARATOR) -> bool:
    """Whether ``first`` and ``second`` can be joined into a pair id."""

    return separator not in first and separator not in second


__all__ = ["require_user_id", "canonical_pair_id", "pairs_with"]
