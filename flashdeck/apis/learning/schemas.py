from __future__ import annotations

from pydantic import BaseModel

from flashdeck.modules.learning.models import SessionState


class LearningSessionResponse(BaseModel):
    session_id: str
    set_id: int
    state: SessionState
