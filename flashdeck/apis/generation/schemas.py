from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from flashdeck.modules.generation.models import CardDraft


class GenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Missing topic is reported as 400 by the generator, not as a schema error
    topic: Optional[str] = Field(default=None, description="Topic, 2-200 characters")
    set_id: Optional[int] = Field(default=None, alias="setId")


class GenerateResponse(BaseModel):
    flashcards: list[CardDraft] = Field(default_factory=list)


class DraftTopicRequest(BaseModel):
    topic: Optional[str] = None


class DraftEditRequest(BaseModel):
    field: Literal["front", "back"]
    value: str


class DraftsResponse(BaseModel):
    set_id: int
    busy: bool = False
    drafts: list[CardDraft] = Field(default_factory=list)
