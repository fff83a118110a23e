from __future__ import annotations

from typing import Annotated, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.core.db.base import get_session
from flashdeck.core.db.schemas.auth import User
from flashdeck.core.db_services import LearningSetStore
from flashdeck.modules.access import Viewer
from flashdeck.modules.auth import fastapi_users
from flashdeck.modules.generation.generator import FlashcardGenerator
from flashdeck.modules.generation.state import DraftRegistry, draft_registry
from flashdeck.modules.learning.state import SessionRegistry, session_registry


optional_user = fastapi_users.current_user(active=True, optional=True)


async def current_viewer(user: Optional[User] = Depends(optional_user)) -> Viewer:
    """Explicit identity for the request; anonymous when no valid bearer token.

    Routes decide themselves whether an anonymous viewer is acceptable.
    """
    if user is None:
        return Viewer.anonymous()
    return Viewer(user_id=user.id)


async def get_store(session: AsyncSession = Depends(get_session)) -> LearningSetStore:
    return LearningSetStore(session)


async def get_generator(
    store: LearningSetStore = Depends(get_store),
) -> FlashcardGenerator:
    return FlashcardGenerator(store)


def get_draft_registry() -> DraftRegistry:
    return draft_registry


def get_session_registry() -> SessionRegistry:
    return session_registry


CurrentViewer = Annotated[Viewer, Depends(current_viewer)]
Store = Annotated[LearningSetStore, Depends(get_store)]
Generator = Annotated[FlashcardGenerator, Depends(get_generator)]
Drafts = Annotated[DraftRegistry, Depends(get_draft_registry)]
Sessions = Annotated[SessionRegistry, Depends(get_session_registry)]
