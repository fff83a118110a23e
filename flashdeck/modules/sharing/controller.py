"""Public/private toggle and share-token handling for learning sets.

Tokens are minted by the store, never by the caller. Both visibility fields
are written in one update so a set is never left public without a token. On
a failed write the controller re-reads the set and exposes what is actually
persisted in ``state`` before re-raising.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel

from flashdeck.core.config import settings
from flashdeck.core.errors import PersistenceFailure
from flashdeck.core.logging import get_logger, log_context
from flashdeck.modules.access import Viewer

logger = get_logger(__name__)


class ShareState(BaseModel):
    set_id: int
    is_public: bool
    share_token: Optional[str] = None
    share_url: Optional[str] = None


def share_url(origin: str, set_id: Any, token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    return f"{origin.rstrip('/')}/set/{set_id}?token={token}"


class SharingController:
    def __init__(self, store: Any, viewer: Viewer, *, origin: Optional[str] = None):
        self.store = store
        self.viewer = viewer
        self.origin = origin or settings.app.public_origin
        self.state: Optional[ShareState] = None

    def _to_state(self, learning_set: Any) -> ShareState:
        self.state = ShareState(
            set_id=learning_set.id,
            is_public=learning_set.is_public,
            share_token=learning_set.share_token,
            share_url=share_url(self.origin, learning_set.id, learning_set.share_token),
        )
        return self.state

    async def get_state(self, set_id: int) -> ShareState:
        learning_set = await self.store.get_owned_set(self.viewer, set_id)
        return self._to_state(learning_set)

    async def enable_sharing(self, set_id: int) -> ShareState:
        learning_set = await self.store.get_owned_set(self.viewer, set_id)
        token = learning_set.share_token
        try:
            if not token:
                token = await self.store.generate_share_token()
            updated = await self.store.update_sharing(
                self.viewer, set_id, is_public=True, share_token=token
            )
        except PersistenceFailure:
            await self._reconcile(set_id)
            raise
        logger.info(
            "Sharing enabled",
            extra=log_context(user_id=self.viewer.user_id, set_id=set_id),
        )
        return self._to_state(updated)

    async def disable_sharing(self, set_id: int) -> ShareState:
        await self.store.get_owned_set(self.viewer, set_id)
        try:
            updated = await self.store.update_sharing(
                self.viewer, set_id, is_public=False, share_token=None
            )
        except PersistenceFailure:
            await self._reconcile(set_id)
            raise
        logger.info(
            "Sharing disabled",
            extra=log_context(user_id=self.viewer.user_id, set_id=set_id),
        )
        return self._to_state(updated)

    async def set_sharing(self, set_id: int, enabled: bool) -> ShareState:
        if enabled:
            return await self.enable_sharing(set_id)
        return await self.disable_sharing(set_id)

    async def _reconcile(self, set_id: int) -> None:
        try:
            learning_set = await self.store.get_set(set_id)
        except PersistenceFailure:
            logger.error(
                "Could not re-read sharing state after a failed update",
                extra=log_context(user_id=self.viewer.user_id, set_id=set_id),
            )
            self.state = None
            return
        self._to_state(learning_set)


__all__ = ["ShareState", "SharingController", "share_url"]
