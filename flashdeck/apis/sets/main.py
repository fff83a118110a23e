from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Response, status

from flashdeck.core.config import settings
from flashdeck.core.db.schemas.learning_sets import LearningSet
from flashdeck.apis.deps import CurrentViewer, Drafts, Store
from flashdeck.modules.access import can_mutate
from flashdeck.modules.sharing import SharingController
from .schemas import (
    FlashcardCreate,
    FlashcardRead,
    FlashcardUpdate,
    LearningSetCreate,
    LearningSetRead,
    LearningSetSummary,
    LearningSetUpdate,
    SharingRead,
    SharingUpdate,
)


router = APIRouter()

PREFIX = f"/{settings.app.version}"


def _summary(s: LearningSet, card_count: int = 0) -> LearningSetSummary:
    return LearningSetSummary(
        id=s.id,
        title=s.title,
        description=s.description,
        emoji=s.emoji,
        color=s.color,
        is_public=s.is_public,
        created_at=s.created_at.isoformat(),
        card_count=card_count,
    )


@router.get(
    f"{PREFIX}/sets",
    response_model=list[LearningSetSummary],
    tags=["sets"],
)
async def list_sets(viewer: CurrentViewer, store: Store) -> list[LearningSetSummary]:
    rows = await store.list_sets(viewer)
    return [_summary(s, count) for s, count in rows]


@router.post(
    f"{PREFIX}/sets",
    response_model=LearningSetSummary,
    status_code=status.HTTP_201_CREATED,
    tags=["sets"],
)
async def create_set(
    req: LearningSetCreate, viewer: CurrentViewer, store: Store
) -> LearningSetSummary:
    s = await store.create_set(
        viewer,
        title=req.title,
        description=req.description,
        emoji=req.emoji,
        color=req.color,
    )
    return _summary(s)


@router.get(
    f"{PREFIX}/sets/{{set_id:int}}",
    response_model=LearningSetRead,
    tags=["sets"],
)
async def get_set(
    set_id: int,
    viewer: CurrentViewer,
    store: Store,
    token: Optional[str] = None,
) -> LearningSetRead:
    s = await store.get_readable_set(viewer, set_id, token)
    cards = await store.list_cards(set_id)
    is_owner = can_mutate(viewer, s)
    return LearningSetRead(
        **_summary(s, len(cards)).model_dump(),
        is_owner=is_owner,
        share_token=s.share_token if is_owner else None,
        flashcards=[FlashcardRead.from_card(c) for c in cards],
    )


@router.patch(
    f"{PREFIX}/sets/{{set_id:int}}",
    response_model=LearningSetSummary,
    tags=["sets"],
)
async def update_set(
    set_id: int, req: LearningSetUpdate, viewer: CurrentViewer, store: Store
) -> LearningSetSummary:
    s = await store.update_set(
        viewer,
        set_id,
        title=req.title,
        description=req.description,
        emoji=req.emoji,
        color=req.color,
        clear_description="description" in req.model_fields_set and req.description is None,
    )
    return _summary(s)


@router.delete(
    f"{PREFIX}/sets/{{set_id:int}}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["sets"],
)
async def delete_set(
    set_id: int, viewer: CurrentViewer, store: Store, drafts: Drafts
) -> Response:
    await store.delete_set(viewer, set_id)
    drafts.discard_set(set_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Cards ------------------------------------------------------------------
@router.post(
    f"{PREFIX}/sets/{{set_id:int}}/cards",
    response_model=FlashcardRead,
    status_code=status.HTTP_201_CREATED,
    tags=["cards"],
)
async def create_card(
    set_id: int, req: FlashcardCreate, viewer: CurrentViewer, store: Store
) -> FlashcardRead:
    card = await store.create_card(viewer, set_id, front=req.front, back=req.back)
    return FlashcardRead.from_card(card)


@router.patch(
    f"{PREFIX}/cards/{{card_id:int}}",
    response_model=FlashcardRead,
    tags=["cards"],
)
async def update_card(
    card_id: int, req: FlashcardUpdate, viewer: CurrentViewer, store: Store
) -> FlashcardRead:
    card = await store.update_card(viewer, card_id, front=req.front, back=req.back)
    return FlashcardRead.from_card(card)


@router.delete(
    f"{PREFIX}/cards/{{card_id:int}}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["cards"],
)
async def delete_card(card_id: int, viewer: CurrentViewer, store: Store) -> Response:
    await store.delete_card(viewer, card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Sharing ----------------------------------------------------------------
@router.get(
    f"{PREFIX}/sets/{{set_id:int}}/sharing",
    response_model=SharingRead,
    tags=["sharing"],
)
async def get_sharing(set_id: int, viewer: CurrentViewer, store: Store) -> SharingRead:
    state = await SharingController(store, viewer).get_state(set_id)
    return SharingRead(**state.model_dump())


@router.put(
    f"{PREFIX}/sets/{{set_id:int}}/sharing",
    response_model=SharingRead,
    tags=["sharing"],
)
async def update_sharing(
    set_id: int, req: SharingUpdate, viewer: CurrentViewer, store: Store
) -> SharingRead:
    state = await SharingController(store, viewer).set_sharing(set_id, req.enabled)
    return SharingRead(**state.model_dump())
