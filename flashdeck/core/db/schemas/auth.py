from __future__ import annotations

from typing import TYPE_CHECKING
from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTable

from flashdeck.core.db.base import Base

if TYPE_CHECKING:
    from .learning_sets import LearningSet


class User(SQLAlchemyBaseUserTable[int], Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    learning_sets: Mapped[list["LearningSet"]] = relationship(
        "LearningSet", back_populates="user", cascade="all, delete-orphan"
    )


__all__ = ["User"]
