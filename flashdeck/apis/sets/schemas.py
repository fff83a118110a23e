from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class LearningSetCreate(BaseModel):
    title: str = Field(..., description="1-100 characters")
    description: Optional[str] = None
    emoji: Optional[str] = None
    color: Optional[str] = Field(default=None, description="#RRGGBB")


class LearningSetUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    emoji: Optional[str] = None
    color: Optional[str] = None


class LearningSetSummary(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    emoji: str
    color: str
    is_public: bool
    created_at: str
    card_count: int = 0


class FlashcardRead(BaseModel):
    id: int
    set_id: int
    front: str
    back: str
    created_at: str

    @classmethod
    def from_card(cls, c: Any) -> "FlashcardRead":
        return cls(
            id=c.id,
            set_id=c.set_id,
            front=c.front,
            back=c.back,
            created_at=c.created_at.isoformat(),
        )


class LearningSetRead(LearningSetSummary):
    is_owner: bool = False
    # Only disclosed to the owner
    share_token: Optional[str] = None
    flashcards: list[FlashcardRead] = Field(default_factory=list)


class FlashcardCreate(BaseModel):
    front: str
    back: str


class FlashcardUpdate(BaseModel):
    front: Optional[str] = None
    back: Optional[str] = None


class SharingUpdate(BaseModel):
    enabled: bool


class SharingRead(BaseModel):
    set_id: int
    is_public: bool
    share_token: Optional[str] = None
    share_url: Optional[str] = None
