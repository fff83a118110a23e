"""Models for learning sessions: the card projection and the public state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class SessionStatus(str, Enum):
    LOADING = "loading"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class SessionCard:
    """Read-only view of a persisted flashcard."""

    id: Any
    front: str
    back: str

    @classmethod
    def from_card(cls, card: Any) -> "SessionCard":
        if isinstance(card, SessionCard):
            return card
        if isinstance(card, dict):
            return cls(id=card.get("id"), front=card["front"], back=card["back"])
        return cls(id=card.id, front=card.front, back=card.back)


class SessionCardRead(BaseModel):
    id: Any = None
    front: str
    back: Optional[str] = None


class SessionState(BaseModel):
    status: SessionStatus
    index: int
    total: int
    flipped: bool
    known: int
    unknown: int
    # None while nothing has been scored
    percentage: Optional[int] = None
    current_card: Optional[SessionCardRead] = None
