"""Database service for learning sets and their flashcards.

``LearningSetStore`` is the only code that talks to the ``learning_sets`` and
``flashcards`` tables. Every mutating method receives the acting ``Viewer``
and checks ownership itself, so a caller that skips the UI cannot bypass it.
"""

from __future__ import annotations

import secrets
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flashdeck.core.db.schemas.learning_sets import (
    DEFAULT_COLOR,
    DEFAULT_EMOJI,
    Flashcard,
    LearningSet,
)
from flashdeck.core.errors import (
    AuthenticationRequired,
    CardNotFound,
    PersistenceFailure,
    SetNotFound,
)
from flashdeck.core.logging import get_logger, log_context
from flashdeck.modules.access import Viewer, require_mutate, require_read
from flashdeck.modules.validation import (
    validate_back,
    validate_card,
    validate_color,
    validate_description,
    validate_emoji,
    validate_front,
    validate_set,
    validate_title,
)

logger = get_logger(__name__)

SHARE_TOKEN_BYTES = 24


class LearningSetStore:
    """Service for managing learning sets and flashcards in the database."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _write(self, action: str, **ctx) -> AsyncIterator[None]:
        try:
            yield
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"{action} failed: {e}", extra=log_context(**ctx))
            raise PersistenceFailure() from e

    @asynccontextmanager
    async def _read(self, action: str, **ctx) -> AsyncIterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"{action} failed: {e}", extra=log_context(**ctx))
            raise PersistenceFailure() from e

    # Sets ---------------------------------------------------------------
    async def get_set(self, set_id: int) -> LearningSet:
        """Load a set without any access check."""
        async with self._read("load set", set_id=set_id):
            result = await self.session.execute(
                select(LearningSet).where(LearningSet.id == set_id)
            )
            learning_set = result.scalar_one_or_none()
        if learning_set is None:
            raise SetNotFound()
        return learning_set

    async def get_readable_set(
        self, viewer: Viewer, set_id: int, token: Optional[str] = None
    ) -> LearningSet:
        learning_set = await self.get_set(set_id)
        require_read(viewer, learning_set, token)
        return learning_set

    async def get_owned_set(self, viewer: Viewer, set_id: int) -> LearningSet:
        if not viewer.is_authenticated:
            raise AuthenticationRequired()
        learning_set = await self.get_set(set_id)
        require_mutate(viewer, learning_set)
        return learning_set

    async def list_sets(self, viewer: Viewer) -> list[tuple[LearningSet, int]]:
        """Owner's sets, newest first, with their card counts."""
        if not viewer.is_authenticated:
            raise AuthenticationRequired()
        async with self._read("list sets", user_id=viewer.user_id):
            rows = await self.session.execute(
                select(LearningSet, func.count(Flashcard.id))
                .outerjoin(Flashcard, Flashcard.set_id == LearningSet.id)
                .where(LearningSet.user_id == viewer.user_id)
                .group_by(LearningSet.id)
                .order_by(LearningSet.created_at.desc(), LearningSet.id.desc())
            )
            return [(s, int(count)) for s, count in rows.all()]

    async def create_set(
        self,
        viewer: Viewer,
        *,
        title: str,
        description: Optional[str] = None,
        emoji: Optional[str] = None,
        color: Optional[str] = None,
    ) -> LearningSet:
        if not viewer.is_authenticated:
            raise AuthenticationRequired()
        data = validate_set(title, description, emoji, color)
        learning_set = LearningSet(
            user_id=viewer.user_id,
            title=data["title"],
            description=data["description"],
            emoji=data.get("emoji", DEFAULT_EMOJI),
            color=data.get("color", DEFAULT_COLOR),
            is_public=False,
            share_token=None,
        )
        async with self._write("create set", user_id=viewer.user_id):
            self.session.add(learning_set)
        await self.session.refresh(learning_set)
        logger.info(
            "Learning set created",
            extra=log_context(user_id=viewer.user_id, set_id=learning_set.id),
        )
        return learning_set

    async def update_set(
        self,
        viewer: Viewer,
        set_id: int,
        *,
        title: Optional[str] = None,
        description: Optional[str] = None,
        emoji: Optional[str] = None,
        color: Optional[str] = None,
        clear_description: bool = False,
    ) -> LearningSet:
        learning_set = await self.get_owned_set(viewer, set_id)
        changes: dict = {}
        if title is not None:
            changes["title"] = validate_title(title)
        if description is not None or clear_description:
            changes["description"] = validate_description(description)
        if emoji is not None:
            changes["emoji"] = validate_emoji(emoji)
        if color is not None:
            changes["color"] = validate_color(color)
        if not changes:
            return learning_set
        async with self._write("update set", user_id=viewer.user_id, set_id=set_id):
            for field, value in changes.items():
                setattr(learning_set, field, value)
        await self.session.refresh(learning_set)
        return learning_set

    async def delete_set(self, viewer: Viewer, set_id: int) -> None:
        """Delete a set together with all of its cards."""
        await self.get_owned_set(viewer, set_id)
        async with self._write("delete set", user_id=viewer.user_id, set_id=set_id):
            await self.session.execute(delete(Flashcard).where(Flashcard.set_id == set_id))
            await self.session.execute(delete(LearningSet).where(LearningSet.id == set_id))
        logger.info(
            "Learning set deleted", extra=log_context(user_id=viewer.user_id, set_id=set_id)
        )

    # Sharing ------------------------------------------------------------
    async def generate_share_token(self) -> str:
        """Mint a fresh opaque token not used by any set."""
        while True:
            token = secrets.token_urlsafe(SHARE_TOKEN_BYTES)
            async with self._read("check share token"):
                taken = await self.session.execute(
                    select(LearningSet.id).where(LearningSet.share_token == token)
                )
            if taken.first() is None:
                return token

    async def update_sharing(
        self,
        viewer: Viewer,
        set_id: int,
        *,
        is_public: bool,
        share_token: Optional[str],
    ) -> LearningSet:
        """Write both visibility fields in one commit."""
        learning_set = await self.get_owned_set(viewer, set_id)
        async with self._write("update sharing", user_id=viewer.user_id, set_id=set_id):
            learning_set.is_public = is_public
            learning_set.share_token = share_token
        await self.session.refresh(learning_set)
        return learning_set

    # Cards --------------------------------------------------------------
    async def list_cards(self, set_id: int) -> list[Flashcard]:
        """Cards of a set in creation order. Callers check read access first."""
        async with self._read("list cards", set_id=set_id):
            rows = await self.session.execute(
                select(Flashcard)
                .where(Flashcard.set_id == set_id)
                .order_by(Flashcard.created_at.asc(), Flashcard.id.asc())
            )
            return list(rows.scalars().all())

    async def get_card(self, card_id: int) -> Flashcard:
        async with self._read("load card"):
            result = await self.session.execute(
                select(Flashcard).where(Flashcard.id == card_id)
            )
            card = result.scalar_one_or_none()
        if card is None:
            raise CardNotFound()
        return card

    async def create_card(
        self, viewer: Viewer, set_id: int, *, front: str, back: str
    ) -> Flashcard:
        cards = await self.insert_cards(viewer, set_id, [(front, back)])
        return cards[0]

    async def insert_cards(
        self,
        viewer: Viewer,
        set_id: int,
        cards: Iterable[tuple[str, str]],
    ) -> list[Flashcard]:
        """Insert a batch of (front, back) pairs atomically; all or nothing."""
        await self.get_owned_set(viewer, set_id)
        rows: Sequence[Flashcard] = [
            Flashcard(set_id=set_id, front=front, back=back)
            for front, back in (validate_card(f, b) for f, b in cards)
        ]
        if not rows:
            return []
        async with self._write(
            "insert cards", user_id=viewer.user_id, set_id=set_id
        ):
            self.session.add_all(rows)
        for row in rows:
            await self.session.refresh(row)
        return list(rows)

    async def update_card(
        self,
        viewer: Viewer,
        card_id: int,
        *,
        front: Optional[str] = None,
        back: Optional[str] = None,
    ) -> Flashcard:
        card = await self.get_card(card_id)
        await self.get_owned_set(viewer, card.set_id)
        changes: dict = {}
        if front is not None:
            changes["front"] = validate_front(front)
        if back is not None:
            changes["back"] = validate_back(back)
        if not changes:
            return card
        async with self._write(
            "update card", user_id=viewer.user_id, set_id=card.set_id
        ):
            for field, value in changes.items():
                setattr(card, field, value)
        return card

    async def delete_card(self, viewer: Viewer, card_id: int) -> None:
        card = await self.get_card(card_id)
        await self.get_owned_set(viewer, card.set_id)
        async with self._write(
            "delete card", user_id=viewer.user_id, set_id=card.set_id
        ):
            await self.session.execute(delete(Flashcard).where(Flashcard.id == card_id))


__all__ = ["LearningSetStore", "SHARE_TOKEN_BYTES"]
