"""Learning session state machine.

    loading --(non-empty deck)--> active --(score last card)--> finished
                                    ^                              |
                                    +----------- restart ----------+

The deck is a uniform shuffle (Fisher-Yates) of the cards given at start.
The engine never writes to the card list it was created from.
"""

from __future__ import annotations

import random
from typing import Any, Iterable, Optional

from flashdeck.core.errors import InvalidSessionState, NoCards
from flashdeck.modules.learning.models import (
    SessionCard,
    SessionCardRead,
    SessionState,
    SessionStatus,
)


def fisher_yates(items: list, rng: random.Random) -> list:
    """Shuffle ``items`` in place, every permutation equally likely."""
    for i in range(len(items) - 1, 0, -1):
        j = rng.randrange(i + 1)
        items[i], items[j] = items[j], items[i]
    return items


def percentage(known: int, unknown: int) -> Optional[int]:
    """Share of known cards, rounded half up; ``None`` when nothing was scored."""
    total = known + unknown
    if total == 0:
        return None
    return (known * 200 + total) // (2 * total)


class LearningSession:
    def __init__(
        self, cards: Iterable[Any], *, rng: Optional[random.Random] = None
    ) -> None:
        self.status = SessionStatus.LOADING
        self._original: tuple[SessionCard, ...] = tuple(
            SessionCard.from_card(c) for c in cards
        )
        if not self._original:
            raise NoCards()
        self._rng = rng or random.Random()
        self._start()

    def _start(self) -> None:
        self.deck: list[SessionCard] = fisher_yates(list(self._original), self._rng)
        self.index = 0
        self.flipped = False
        self.known = 0
        self.unknown = 0
        self.status = SessionStatus.ACTIVE

    # Queries -------------------------------------------------------------
    @property
    def cards(self) -> tuple[SessionCard, ...]:
        """The cards in their original order."""
        return self._original

    @property
    def total(self) -> int:
        return len(self.deck)

    @property
    def current_card(self) -> Optional[SessionCard]:
        if self.status != SessionStatus.ACTIVE:
            return None
        return self.deck[self.index]

    @property
    def is_finished(self) -> bool:
        return self.status == SessionStatus.FINISHED

    @property
    def percentage(self) -> Optional[int]:
        return percentage(self.known, self.unknown)

    @property
    def progress(self) -> float:
        if self.is_finished:
            return 100.0
        return (self.index + 1) / self.total * 100

    def summary(self) -> dict:
        return {
            "total": self.total,
            "known": self.known,
            "unknown": self.unknown,
            "percentage": self.percentage,
        }

    # Transitions ---------------------------------------------------------
    def _require_active(self) -> None:
        if self.status != SessionStatus.ACTIVE:
            raise InvalidSessionState(f"Session is {self.status.value}")

    def flip(self) -> bool:
        self._require_active()
        self.flipped = not self.flipped
        return self.flipped

    def mark_known(self) -> None:
        self._score(known=True)

    def mark_unknown(self) -> None:
        self._score(known=False)

    def _score(self, *, known: bool) -> None:
        self._require_active()
        if not self.flipped:
            raise InvalidSessionState("Flip the card before scoring it")
        if known:
            self.known += 1
        else:
            self.unknown += 1
        self.flipped = False
        if self.index >= self.total - 1:
            self.status = SessionStatus.FINISHED
        else:
            self.index += 1

    def restart(self) -> None:
        """Reshuffle the original cards and reset all counters."""
        self._start()

    def to_state(self) -> SessionState:
        card = self.current_card
        current = None
        if card is not None:
            # The back stays hidden until the card is flipped
            current = SessionCardRead(
                id=card.id, front=card.front, back=card.back if self.flipped else None
            )
        return SessionState(
            status=self.status,
            index=self.index,
            total=self.total,
            flipped=self.flipped,
            known=self.known,
            unknown=self.unknown,
            percentage=self.percentage,
            current_card=current,
        )


__all__ = ["LearningSession", "fisher_yates", "percentage"]
