from __future__ import annotations

from fastapi import APIRouter, Response, status

from flashdeck.core.config import settings
from flashdeck.core.errors import DraftNotFound
from flashdeck.apis.deps import CurrentViewer, Drafts, Generator, Store
from flashdeck.apis.sets.schemas import FlashcardRead
from flashdeck.modules.access import Viewer
from flashdeck.modules.generation.main import ReviewWorkflow
from .schemas import (
    DraftEditRequest,
    DraftTopicRequest,
    DraftsResponse,
    GenerateRequest,
    GenerateResponse,
)


router = APIRouter()

PREFIX = f"/{settings.app.version}"


@router.post(
    f"{PREFIX}/generate-flashcards",
    response_model=GenerateResponse,
    status_code=status.HTTP_200_OK,
    tags=["generation"],
)
async def generate_flashcards(
    req: GenerateRequest, viewer: CurrentViewer, generator: Generator
) -> GenerateResponse:
    cards = await generator.generate(req.topic, viewer, req.set_id)
    return GenerateResponse(flashcards=cards)


# Review buffer ----------------------------------------------------------
async def _workflow(
    set_id: int,
    viewer: Viewer,
    store,
    generator,
    drafts,
    *,
    create: bool = False,
) -> ReviewWorkflow:
    # Ownership is checked before any buffer is created for the viewer
    await store.get_owned_set(viewer, set_id)
    return ReviewWorkflow(
        buffer=drafts.get(viewer, set_id, create=create),
        generator=generator,
        store=store,
        viewer=viewer,
        set_id=set_id,
    )


def _drafts_response(wf: ReviewWorkflow) -> DraftsResponse:
    return DraftsResponse(
        set_id=wf.set_id, busy=wf.buffer.busy, drafts=wf.buffer.drafts
    )


@router.post(
    f"{PREFIX}/sets/{{set_id:int}}/drafts/generate",
    response_model=DraftsResponse,
    tags=["generation"],
)
async def generate_drafts(
    set_id: int,
    req: DraftTopicRequest,
    viewer: CurrentViewer,
    store: Store,
    generator: Generator,
    drafts: Drafts,
) -> DraftsResponse:
    wf = await _workflow(set_id, viewer, store, generator, drafts, create=True)
    try:
        await wf.generate(req.topic)
    finally:
        drafts.release(viewer, set_id, wf.buffer)
    return _drafts_response(wf)


@router.get(
    f"{PREFIX}/sets/{{set_id:int}}/drafts",
    response_model=DraftsResponse,
    tags=["generation"],
)
async def get_drafts(
    set_id: int,
    viewer: CurrentViewer,
    store: Store,
    generator: Generator,
    drafts: Drafts,
) -> DraftsResponse:
    wf = await _workflow(set_id, viewer, store, generator, drafts)
    return _drafts_response(wf)


@router.patch(
    f"{PREFIX}/sets/{{set_id:int}}/drafts/{{index:int}}",
    response_model=DraftsResponse,
    tags=["generation"],
)
async def edit_draft(
    set_id: int,
    index: int,
    req: DraftEditRequest,
    viewer: CurrentViewer,
    store: Store,
    generator: Generator,
    drafts: Drafts,
) -> DraftsResponse:
    wf = await _workflow(set_id, viewer, store, generator, drafts)
    try:
        wf.edit(index, req.field, req.value)
    except IndexError:
        raise DraftNotFound() from None
    return _drafts_response(wf)


@router.delete(
    f"{PREFIX}/sets/{{set_id:int}}/drafts/{{index:int}}",
    response_model=DraftsResponse,
    tags=["generation"],
)
async def remove_draft(
    set_id: int,
    index: int,
    viewer: CurrentViewer,
    store: Store,
    generator: Generator,
    drafts: Drafts,
) -> DraftsResponse:
    wf = await _workflow(set_id, viewer, store, generator, drafts)
    try:
        wf.remove(index)
    except IndexError:
        raise DraftNotFound() from None
    return _drafts_response(wf)


@router.delete(
    f"{PREFIX}/sets/{{set_id:int}}/drafts",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["generation"],
)
async def clear_drafts(
    set_id: int,
    viewer: CurrentViewer,
    store: Store,
    generator: Generator,
    drafts: Drafts,
) -> Response:
    await _workflow(set_id, viewer, store, generator, drafts)
    drafts.discard(viewer, set_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    f"{PREFIX}/sets/{{set_id:int}}/drafts/commit",
    response_model=list[FlashcardRead],
    status_code=status.HTTP_201_CREATED,
    tags=["generation"],
)
async def commit_drafts(
    set_id: int,
    viewer: CurrentViewer,
    store: Store,
    generator: Generator,
    drafts: Drafts,
) -> list[FlashcardRead]:
    wf = await _workflow(set_id, viewer, store, generator, drafts)
    cards = await wf.commit()
    drafts.release(viewer, set_id, wf.buffer)
    return [FlashcardRead.from_card(c) for c in cards]
