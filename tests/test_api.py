import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import ModelResponse, ToolCallPart
from pydantic_ai.models.function import FunctionModel

from flashdeck.apis.deps import (
    current_viewer,
    get_draft_registry,
    get_generator,
    get_session_registry,
    get_store,
)
from flashdeck.core.db.base import get_session
from flashdeck.modules.access import Viewer
from flashdeck.modules.generation.generator import FlashcardGenerator
from flashdeck.modules.generation.state import DraftRegistry
from flashdeck.modules.learning.state import SessionRegistry
from main import app

CARDS = [{"front": f"Q{i}?", "back": f"A{i}"} for i in range(8)]


def cards_model(calls=None):
    def respond(messages, info):
        if calls is not None:
            calls.append(1)
        return ModelResponse(
            parts=[ToolCallPart(tool_name=info.output_tools[0].name, args={"cards": CARDS})]
        )

    return FunctionModel(respond)


def status_model(status_code):
    def respond(messages, info):
        raise ModelHTTPError(status_code, "test-model", None)

    return FunctionModel(respond)


@pytest.fixture
def as_viewer():
    """Swap the request identity; yields a setter."""
    holder = {"viewer": Viewer.anonymous()}
    app.dependency_overrides[current_viewer] = lambda: holder["viewer"]

    def set_viewer(viewer):
        holder["viewer"] = viewer

    yield set_viewer
    app.dependency_overrides.clear()


# Generation endpoint, no database ------------------------------------------
def _client_with_model(model):
    app.dependency_overrides[get_generator] = lambda: FlashcardGenerator(model=model)
    return TestClient(app)


def test_generate_returns_eight_cards(as_viewer):
    as_viewer(Viewer(user_id=1))
    client = _client_with_model(cards_model())

    response = client.post("/v1/generate-flashcards", json={"topic": "Photosynthesis"})

    assert response.status_code == 200
    assert response.json() == {"flashcards": CARDS}


def test_generate_without_identity_is_401(as_viewer):
    calls = []
    client = _client_with_model(cards_model(calls))

    response = client.post("/v1/generate-flashcards", json={"topic": "Photosynthesis"})

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}
    assert calls == []


@pytest.mark.parametrize("body", [{}, {"topic": "a"}, {"topic": "  "}, {"topic": "t" * 201}])
def test_generate_rejects_bad_topics(as_viewer, body):
    as_viewer(Viewer(user_id=1))
    client = _client_with_model(cards_model())

    response = client.post("/v1/generate-flashcards", json=body)

    assert response.status_code == 400
    assert "error" in response.json()


@pytest.mark.parametrize(
    "body",
    [
        {"topic": 123},
        {"topic": ["Photosynthesis"]},
        {"topic": "Photosynthesis", "setId": "abc"},
    ],
)
def test_generate_rejects_mistyped_fields_with_error_body(as_viewer, body):
    as_viewer(Viewer(user_id=1))
    calls = []
    client = _client_with_model(cards_model(calls))

    response = client.post("/v1/generate-flashcards", json=body)

    assert response.status_code == 400
    assert set(response.json()) == {"error"}
    assert calls == []


def test_generate_rejects_body_that_is_not_json(as_viewer):
    as_viewer(Viewer(user_id=1))
    client = _client_with_model(cards_model())

    response = client.post(
        "/v1/generate-flashcards",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Request body is not valid JSON"}


@pytest.mark.parametrize(
    "status_code, expected",
    [(429, 429), (402, 402), (500, 500)],
)
def test_generate_maps_upstream_errors(as_viewer, status_code, expected):
    as_viewer(Viewer(user_id=1))
    client = _client_with_model(status_model(status_code))

    response = client.post("/v1/generate-flashcards", json={"topic": "Photosynthesis"})

    assert response.status_code == expected
    assert set(response.json()) == {"error"}


# Database backed routes ----------------------------------------------------
@pytest.fixture
def draft_buffers():
    return DraftRegistry()


@pytest.fixture
async def client(session, as_viewer, draft_buffers):
    async def _session():
        yield session

    def _generator(store=Depends(get_store)):
        return FlashcardGenerator(store, model=cards_model())

    drafts, sessions = draft_buffers, SessionRegistry()
    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_generator] = _generator
    app.dependency_overrides[get_draft_registry] = lambda: drafts
    app.dependency_overrides[get_session_registry] = lambda: sessions

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def test_set_and_card_lifecycle(client, as_viewer, owner):
    as_viewer(owner)

    created = await client.post("/v1/sets", json={"title": "Biology"})
    assert created.status_code == 201
    set_id = created.json()["id"]
    assert created.json()["emoji"] == "📚"

    card = await client.post(
        f"/v1/sets/{set_id}/cards", json={"front": " What is ATP? ", "back": "Energy"}
    )
    assert card.status_code == 201
    assert card.json()["front"] == "What is ATP?"

    edited = await client.patch(f"/v1/cards/{card.json()['id']}", json={"back": "Energy currency"})
    assert edited.json()["back"] == "Energy currency"

    listing = await client.get("/v1/sets")
    assert [(s["title"], s["card_count"]) for s in listing.json()] == [("Biology", 1)]

    detail = await client.get(f"/v1/sets/{set_id}")
    assert detail.json()["is_owner"] is True
    assert [c["back"] for c in detail.json()["flashcards"]] == ["Energy currency"]

    bad = await client.patch(f"/v1/sets/{set_id}", json={"color": "red"})
    assert bad.status_code == 400
    assert bad.json() == {"error": "Invalid color"}

    assert (await client.delete(f"/v1/sets/{set_id}")).status_code == 204
    assert (await client.get(f"/v1/sets/{set_id}")).status_code == 404


async def test_non_owner_gets_403_and_private_set_404(client, as_viewer, owner, stranger):
    as_viewer(owner)
    set_id = (await client.post("/v1/sets", json={"title": "Mine"})).json()["id"]

    as_viewer(stranger)
    assert (await client.patch(f"/v1/sets/{set_id}", json={"title": "x"})).status_code == 403
    assert (await client.get(f"/v1/sets/{set_id}")).status_code == 404

    as_viewer(Viewer.anonymous())
    response = await client.post(f"/v1/sets/{set_id}/cards", json={"front": "Q", "back": "A"})
    assert response.status_code == 401


async def test_sharing_link_grants_read_only_access(client, as_viewer, owner):
    as_viewer(owner)
    set_id = (await client.post("/v1/sets", json={"title": "Shared"})).json()["id"]
    await client.post(f"/v1/sets/{set_id}/cards", json={"front": "Q", "back": "A"})

    shared = (await client.put(f"/v1/sets/{set_id}/sharing", json={"enabled": True})).json()
    token = shared["share_token"]
    assert shared["share_url"] == f"https://flashdeck.example/set/{set_id}?token={token}"

    as_viewer(Viewer.anonymous())
    visible = await client.get(f"/v1/sets/{set_id}", params={"token": token})
    assert visible.status_code == 200
    assert visible.json()["is_owner"] is False
    assert visible.json()["share_token"] is None
    assert (await client.patch(f"/v1/sets/{set_id}", json={"title": "x"})).status_code == 401

    as_viewer(owner)
    await client.put(f"/v1/sets/{set_id}/sharing", json={"enabled": False})

    as_viewer(Viewer.anonymous())
    assert (await client.get(f"/v1/sets/{set_id}", params={"token": token})).status_code == 404


async def test_draft_review_and_commit(client, as_viewer, owner, draft_buffers):
    as_viewer(owner)
    set_id = (await client.post("/v1/sets", json={"title": "Photosynthesis"})).json()["id"]

    generated = await client.post(
        f"/v1/sets/{set_id}/drafts/generate", json={"topic": "Photosynthesis"}
    )
    assert len(generated.json()["drafts"]) == 8

    removed = await client.delete(f"/v1/sets/{set_id}/drafts/0")
    assert len(removed.json()["drafts"]) == 7
    assert (await client.delete(f"/v1/sets/{set_id}/drafts/99")).status_code == 404

    committed = await client.post(f"/v1/sets/{set_id}/drafts/commit")
    assert committed.status_code == 201
    assert len(committed.json()) == 7
    assert all(c["set_id"] == set_id for c in committed.json())
    assert draft_buffers.count() == 0

    assert (await client.get(f"/v1/sets/{set_id}/drafts")).json()["drafts"] == []
    empty = await client.post(f"/v1/sets/{set_id}/drafts/commit")
    assert empty.json() == {"error": "No cards to save"}
    assert draft_buffers.count() == 0


async def test_deleting_a_set_drops_its_drafts(client, as_viewer, owner, draft_buffers):
    as_viewer(owner)
    set_id = (await client.post("/v1/sets", json={"title": "Doomed"})).json()["id"]
    await client.post(f"/v1/sets/{set_id}/drafts/generate", json={"topic": "Photosynthesis"})
    assert draft_buffers.count() == 1

    assert (await client.delete(f"/v1/sets/{set_id}")).status_code == 204
    assert draft_buffers.count() == 0


async def test_failed_generation_leaves_no_draft_entry(client, as_viewer, owner, draft_buffers):
    as_viewer(owner)
    set_id = (await client.post("/v1/sets", json={"title": "Cells"})).json()["id"]

    response = await client.post(f"/v1/sets/{set_id}/drafts/generate", json={"topic": "x"})

    assert response.status_code == 400
    assert draft_buffers.count() == 0


async def test_learning_session_over_http(client, as_viewer, owner):
    as_viewer(owner)
    set_id = (await client.post("/v1/sets", json={"title": "Quiz"})).json()["id"]

    empty = await client.post(f"/v1/sets/{set_id}/sessions")
    assert empty.status_code == 422

    for i in range(2):
        await client.post(f"/v1/sets/{set_id}/cards", json={"front": f"Q{i}", "back": f"A{i}"})

    started = (await client.post(f"/v1/sets/{set_id}/sessions")).json()
    sid = started["session_id"]
    assert started["state"]["status"] == "active"
    assert started["state"]["current_card"]["back"] is None

    early = await client.post(f"/v1/sessions/{sid}/known")
    assert early.status_code == 409

    for _ in range(2):
        await client.post(f"/v1/sessions/{sid}/flip")
        state = (await client.post(f"/v1/sessions/{sid}/known")).json()["state"]

    assert state["status"] == "finished"
    assert state["percentage"] == 100

    restarted = (await client.post(f"/v1/sessions/{sid}/restart")).json()["state"]
    assert (restarted["status"], restarted["known"], restarted["percentage"]) == ("active", 0, None)

    as_viewer(Viewer.anonymous())
    assert (await client.get(f"/v1/sessions/{sid}")).status_code == 404

    as_viewer(owner)
    assert (await client.delete(f"/v1/sessions/{sid}")).status_code == 204
    assert (await client.get(f"/v1/sessions/{sid}")).status_code == 404


# Real authentication ---------------------------------------------------------
@pytest.fixture
async def auth_client(session):
    async def _session():
        yield session

    app.dependency_overrides[get_session] = _session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


async def test_register_login_and_use_bearer_token(auth_client):
    registered = await auth_client.post(
        "/v1/auth/register", json={"email": "learner@example.com", "password": "secret123"}
    )
    assert registered.status_code == 201

    login = await auth_client.post(
        "/v1/auth/login", data={"username": "learner@example.com", "password": "secret123"}
    )
    assert login.status_code == 200
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

    assert (await auth_client.get("/v1/sets")).status_code == 401
    mine = await auth_client.get("/v1/sets", headers=headers)
    assert mine.status_code == 200
    assert mine.json() == []


async def test_register_rejects_short_password(auth_client):
    response = await auth_client.post(
        "/v1/auth/register", json={"email": "short@example.com", "password": "123"}
    )
    assert response.status_code == 400


async def test_jwks_exposes_signing_key(auth_client):
    response = await auth_client.get("/.well-known/jwks.json")
    key = response.json()["keys"][0]
    assert key["kid"] == "v1"
    assert key["kty"] == "RSA"
