from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Response, status

from flashdeck.core.config import settings
from flashdeck.apis.deps import CurrentViewer, Sessions, Store
from flashdeck.modules.learning.state import ActiveSession
from .schemas import LearningSessionResponse


router = APIRouter()

PREFIX = f"/{settings.app.version}"


def _response(session: ActiveSession) -> LearningSessionResponse:
    return LearningSessionResponse(
        session_id=session.id,
        set_id=session.set_id,
        state=session.engine.to_state(),
    )


@router.post(
    f"{PREFIX}/sets/{{set_id:int}}/sessions",
    response_model=LearningSessionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["learning"],
)
async def start_session(
    set_id: int,
    viewer: CurrentViewer,
    store: Store,
    sessions: Sessions,
    token: Optional[str] = None,
) -> LearningSessionResponse:
    await store.get_readable_set(viewer, set_id, token)
    cards = await store.list_cards(set_id)
    return _response(sessions.start(viewer, set_id, cards))


@router.get(
    f"{PREFIX}/sessions/{{session_id}}",
    response_model=LearningSessionResponse,
    tags=["learning"],
)
async def get_session_state(
    session_id: str, viewer: CurrentViewer, sessions: Sessions
) -> LearningSessionResponse:
    return _response(sessions.get(viewer, session_id))


@router.post(
    f"{PREFIX}/sessions/{{session_id}}/flip",
    response_model=LearningSessionResponse,
    tags=["learning"],
)
async def flip_card(
    session_id: str, viewer: CurrentViewer, sessions: Sessions
) -> LearningSessionResponse:
    session = sessions.get(viewer, session_id)
    session.engine.flip()
    return _response(session)


@router.post(
    f"{PREFIX}/sessions/{{session_id}}/known",
    response_model=LearningSessionResponse,
    tags=["learning"],
)
async def mark_known(
    session_id: str, viewer: CurrentViewer, sessions: Sessions
) -> LearningSessionResponse:
    session = sessions.get(viewer, session_id)
    session.engine.mark_known()
    return _response(session)


@router.post(
    f"{PREFIX}/sessions/{{session_id}}/unknown",
    response_model=LearningSessionResponse,
    tags=["learning"],
)
async def mark_unknown(
    session_id: str, viewer: CurrentViewer, sessions: Sessions
) -> LearningSessionResponse:
    session = sessions.get(viewer, session_id)
    session.engine.mark_unknown()
    return _response(session)


@router.post(
    f"{PREFIX}/sessions/{{session_id}}/restart",
    response_model=LearningSessionResponse,
    tags=["learning"],
)
async def restart_session(
    session_id: str, viewer: CurrentViewer, sessions: Sessions
) -> LearningSessionResponse:
    session = sessions.get(viewer, session_id)
    session.engine.restart()
    return _response(session)


@router.delete(
    f"{PREFIX}/sessions/{{session_id}}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["learning"],
)
async def leave_session(
    session_id: str, viewer: CurrentViewer, sessions: Sessions
) -> Response:
    sessions.remove(viewer, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
