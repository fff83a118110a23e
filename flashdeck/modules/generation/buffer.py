"""Staging list of generated card drafts awaiting the owner's review.

The buffer is a plain value: it knows nothing about HTTP, storage or models.
A generation run takes a ticket with ``begin()``; results are only applied
while that ticket is still current, so a ``clear()`` (dialog closed,
regenerate) makes late results from an earlier run disappear.
"""

from __future__ import annotations

import itertools
from typing import Iterable, Literal, Optional

from flashdeck.core.errors import GenerationInProgress
from flashdeck.modules.generation.models import CardDraft

DraftField = Literal["front", "back"]

_tickets = itertools.count(1)


class ReviewBuffer:
    def __init__(self, drafts: Iterable[CardDraft] = ()) -> None:
        self._drafts: list[CardDraft] = [d.model_copy() for d in drafts]
        self._ticket: Optional[int] = None
        self._busy = False

    @property
    def drafts(self) -> list[CardDraft]:
        return [d.model_copy() for d in self._drafts]

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def is_empty(self) -> bool:
        return not self._drafts

    def __len__(self) -> int:
        return len(self._drafts)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ReviewBuffer):
            return self._drafts == other._drafts
        if isinstance(other, list):
            return self._drafts == other
        return NotImplemented

    # Generation lifecycle ----------------------------------------------
    def begin(self) -> int:
        if self._busy:
            raise GenerationInProgress()
        self._busy = True
        self._ticket = next(_tickets)
        return self._ticket

    def is_current(self, ticket: int) -> bool:
        return self._ticket == ticket

    def apply(self, ticket: int, drafts: Iterable[CardDraft]) -> bool:
        """Replace the content if ``ticket`` is still current; report whether it was."""
        if not self.is_current(ticket):
            return False
        self.replace_all(drafts)
        return True

    def finish(self, ticket: int) -> None:
        if self.is_current(ticket):
            self._busy = False

    # Editing -------------------------------------------------------------
    def replace_all(self, drafts: Iterable[CardDraft]) -> None:
        self._drafts = [d.model_copy() for d in drafts]

    def edit(self, index: int, field: DraftField, value: str) -> CardDraft:
        if field not in ("front", "back"):
            raise ValueError(f"Unknown draft field: {field}")
        draft = self._drafts[self._check_index(index)]
        updated = draft.model_copy(update={field: value})
        self._drafts[index] = updated
        return updated

    def remove(self, index: int) -> CardDraft:
        return self._drafts.pop(self._check_index(index))

    def clear(self) -> None:
        """Empty the buffer and drop any in-flight run."""
        self._drafts = []
        self._ticket = None
        self._busy = False

    def _check_index(self, index: int) -> int:
        # Negative indexes would silently address the wrong draft
        if index < 0 or index >= len(self._drafts):
            raise IndexError(f"No draft at index {index}")
        return index


__all__ = ["DraftField", "ReviewBuffer"]
