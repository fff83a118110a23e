"""Pydantic models for generated flashcards.

``GeneratedCards`` is the schema of the forced ``create_flashcards`` tool
call; ``CardDraft`` is what the review buffer holds until commit.
"""

from pydantic import BaseModel, Field


class CardDraft(BaseModel):
    """Question on the front, answer on the back."""

    front: str = Field(min_length=1, description="The question or term")
    back: str = Field(min_length=1, description="The answer or explanation")


class GeneratedCards(BaseModel):
    """Create flashcards with questions and answers."""

    cards: list[CardDraft]
