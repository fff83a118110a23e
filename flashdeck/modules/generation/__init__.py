"""Flashcard generation exports."""

from .models import CardDraft, GeneratedCards
from .generator import FlashcardGenerator
from .buffer import ReviewBuffer
from .main import ReviewWorkflow, build_workflow

__all__ = [
    "CardDraft",
    "GeneratedCards",
    "FlashcardGenerator",
    "ReviewBuffer",
    "ReviewWorkflow",
    "build_workflow",
]
