from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional
from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
    false as sa_false,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flashdeck.core.db.base import Base

if TYPE_CHECKING:
    from .auth import User


DEFAULT_EMOJI = "📚"
DEFAULT_COLOR = "#9b87f5"


class LearningSet(Base):
    __tablename__ = "learning_sets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    emoji: Mapped[str] = mapped_column(String(10), nullable=False, default=DEFAULT_EMOJI)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default=DEFAULT_COLOR)
    is_public: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=sa_false()
    )
    # Non-null exactly when is_public once a sharing transition has settled
    share_token: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, unique=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user: Mapped["User"] = relationship("User", back_populates="learning_sets")
    flashcards: Mapped[list["Flashcard"]] = relationship(
        "Flashcard",
        back_populates="learning_set",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Flashcard(Base):
    __tablename__ = "flashcards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    set_id: Mapped[int] = mapped_column(
        ForeignKey("learning_sets.id", ondelete="CASCADE"), nullable=False, index=True
    )
    front: Mapped[str] = mapped_column(Text, nullable=False)
    back: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    learning_set: Mapped["LearningSet"] = relationship(
        "LearningSet", back_populates="flashcards"
    )


__all__ = [
    "DEFAULT_EMOJI",
    "DEFAULT_COLOR",
    "LearningSet",
    "Flashcard",
]
