"""Ownership and share-token checks for learning sets.

The identity is always passed in as a ``Viewer``; nothing here looks up a
"current user" on its own.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Optional, Protocol

from flashdeck.core.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    SetNotFound,
)


@dataclass(frozen=True)
class Viewer:
    user_id: Optional[int] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @classmethod
    def anonymous(cls) -> "Viewer":
        return cls(user_id=None)


class OwnedSet(Protocol):
    user_id: int
    is_public: bool
    share_token: Optional[str]


def can_mutate(viewer: Viewer, learning_set: OwnedSet) -> bool:
    return viewer.is_authenticated and viewer.user_id == learning_set.user_id


def can_read(
    viewer: Viewer, learning_set: OwnedSet, token: Optional[str] = None
) -> bool:
    if can_mutate(viewer, learning_set):
        return True
    if not (learning_set.is_public and token and learning_set.share_token):
        return False
    return secrets.compare_digest(
        token.encode("utf-8"), learning_set.share_token.encode("utf-8")
    )


def require_mutate(viewer: Viewer, learning_set: OwnedSet) -> None:
    if not viewer.is_authenticated:
        raise AuthenticationRequired()
    if not can_mutate(viewer, learning_set):
        raise AuthorizationDenied()


def require_read(
    viewer: Viewer, learning_set: OwnedSet, token: Optional[str] = None
) -> None:
    # Unreadable private sets look the same as missing ones
    if not can_read(viewer, learning_set, token):
        raise SetNotFound()


__all__ = [
    "Viewer",
    "can_mutate",
    "can_read",
    "require_mutate",
    "require_read",
]
