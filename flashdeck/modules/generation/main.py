"""Review workflow: generate into a buffer, let the owner edit, commit once.

Ties a ``ReviewBuffer`` to the generator and the store for one viewer and
one set, so API handlers and the CLI share the same rules.
"""

from __future__ import annotations

from typing import Any, Optional

from flashdeck.core.errors import (
    GenerationInProgress,
    InvalidInput,
    PersistenceFailure,
    UpstreamMalformed,
)
from flashdeck.core.logging import get_logger, log_context
from flashdeck.modules.access import Viewer
from flashdeck.modules.generation.buffer import DraftField, ReviewBuffer
from flashdeck.modules.generation.generator import FlashcardGenerator
from flashdeck.modules.generation.models import CardDraft

logger = get_logger(__name__)


class ReviewWorkflow:
    def __init__(
        self,
        *,
        buffer: ReviewBuffer,
        generator: FlashcardGenerator,
        store: Any,
        viewer: Viewer,
        set_id: int,
    ) -> None:
        self.buffer = buffer
        self.generator = generator
        self.store = store
        self.viewer = viewer
        self.set_id = set_id

    @property
    def _ctx(self) -> dict:
        return log_context(user_id=self.viewer.user_id, set_id=self.set_id)

    async def generate(self, topic: str) -> list[CardDraft]:
        """Replace the buffer with a fresh generation; on failure it stays empty."""
        ticket = self.buffer.begin()
        try:
            self.buffer.replace_all([])
            drafts = await self.generator.generate(topic, self.viewer, self.set_id)
            if not drafts:
                raise UpstreamMalformed("No cards were generated")
            if not self.buffer.apply(ticket, drafts):
                logger.info("Discarding stale generation result", extra=self._ctx)
            return self.buffer.drafts
        finally:
            self.buffer.finish(ticket)

    def edit(self, index: int, field: DraftField, value: str) -> CardDraft:
        return self.buffer.edit(index, field, value)

    def remove(self, index: int) -> CardDraft:
        return self.buffer.remove(index)

    def discard(self) -> None:
        self.buffer.clear()

    async def commit(self) -> list:
        """Persist every draft in one batch; keep them if the insert fails."""
        if self.buffer.busy:
            raise GenerationInProgress()
        if self.buffer.is_empty:
            raise InvalidInput("No cards to save")
        drafts = self.buffer.drafts
        try:
            cards = await self.store.insert_cards(
                self.viewer, self.set_id, [(d.front, d.back) for d in drafts]
            )
        except PersistenceFailure:
            logger.error("Saving generated cards failed; drafts kept", extra=self._ctx)
            raise
        self.buffer.clear()
        logger.info(f"{len(cards)} generated cards saved", extra=self._ctx)
        return cards


def build_workflow(
    *,
    buffer: ReviewBuffer,
    store: Any,
    viewer: Viewer,
    set_id: int,
    generator: Optional[FlashcardGenerator] = None,
) -> ReviewWorkflow:
    return ReviewWorkflow(
        buffer=buffer,
        generator=generator or FlashcardGenerator(store),
        store=store,
        viewer=viewer,
        set_id=set_id,
    )


__all__ = ["ReviewWorkflow", "build_workflow"]
