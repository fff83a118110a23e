from types import SimpleNamespace

import pytest

from flashdeck.core.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    CardNotFound,
    SetNotFound,
    ValidationFailed,
)
from flashdeck.core.db.schemas.learning_sets import DEFAULT_COLOR, DEFAULT_EMOJI
from flashdeck.modules.access import Viewer, can_mutate, can_read, require_mutate, require_read


def a_set(owner=1, public=False, token=None):
    return SimpleNamespace(user_id=owner, is_public=public, share_token=token)


def test_only_the_owner_can_mutate():
    s = a_set(owner=1)
    assert can_mutate(Viewer(user_id=1), s)
    assert not can_mutate(Viewer(user_id=2), s)
    assert not can_mutate(Viewer.anonymous(), s)


def test_read_needs_owner_or_public_with_matching_token():
    private = a_set(token=None)
    shared = a_set(public=True, token="tok")
    stale = a_set(public=False, token="tok")
    anon = Viewer.anonymous()

    assert can_read(Viewer(user_id=1), private)
    assert not can_read(anon, private, "tok")
    assert can_read(anon, shared, "tok")
    assert not can_read(anon, shared, "other")
    assert not can_read(anon, shared, None)
    assert not can_read(anon, stale, "tok")


def test_require_helpers_raise_the_right_errors():
    s = a_set(owner=1)
    with pytest.raises(AuthenticationRequired):
        require_mutate(Viewer.anonymous(), s)
    with pytest.raises(AuthorizationDenied):
        require_mutate(Viewer(user_id=2), s)
    with pytest.raises(SetNotFound):
        require_read(Viewer(user_id=2), s)
    require_mutate(Viewer(user_id=1), s)
    require_read(Viewer(user_id=1), s)


# Store enforcement ----------------------------------------------------------
async def test_create_set_applies_defaults(store, owner):
    s = await store.create_set(owner, title="  Biology ", description="  ")

    assert s.title == "Biology"
    assert s.description is None
    assert s.emoji == DEFAULT_EMOJI
    assert s.color == DEFAULT_COLOR
    assert s.is_public is False
    assert s.share_token is None


async def test_create_set_validates(store, owner):
    with pytest.raises(ValidationFailed):
        await store.create_set(owner, title="Biology", color="blue")
    with pytest.raises(AuthenticationRequired):
        await store.create_set(Viewer.anonymous(), title="Biology")


async def test_store_refuses_writes_from_non_owner(store, owner, stranger):
    s = await store.create_set(owner, title="Biology")
    card = await store.create_card(owner, s.id, front="Q", back="A")

    with pytest.raises(AuthorizationDenied):
        await store.update_set(stranger, s.id, title="Hijacked")
    with pytest.raises(AuthorizationDenied):
        await store.insert_cards(stranger, s.id, [("Q", "A")])
    with pytest.raises(AuthorizationDenied):
        await store.update_card(stranger, card.id, front="changed")
    with pytest.raises(AuthorizationDenied):
        await store.delete_card(stranger, card.id)
    with pytest.raises(AuthorizationDenied):
        await store.update_sharing(stranger, s.id, is_public=True, share_token="t")
    with pytest.raises(AuthorizationDenied):
        await store.delete_set(stranger, s.id)
    with pytest.raises(AuthenticationRequired):
        await store.delete_set(Viewer.anonymous(), s.id)

    reloaded = await store.get_set(s.id)
    assert reloaded.title == "Biology"
    assert [c.front for c in await store.list_cards(s.id)] == ["Q"]


async def test_private_set_is_hidden_from_others(store, owner, stranger):
    s = await store.create_set(owner, title="Private")

    with pytest.raises(SetNotFound):
        await store.get_readable_set(stranger, s.id)
    with pytest.raises(SetNotFound):
        await store.get_readable_set(Viewer.anonymous(), s.id, "guess")
    assert (await store.get_readable_set(owner, s.id)).id == s.id


async def test_shared_set_is_readable_with_its_token(store, owner):
    s = await store.create_set(owner, title="Shared")
    token = await store.generate_share_token()
    await store.update_sharing(owner, s.id, is_public=True, share_token=token)

    readable = await store.get_readable_set(Viewer.anonymous(), s.id, token)
    assert readable.id == s.id
    with pytest.raises(SetNotFound):
        await store.get_readable_set(Viewer.anonymous(), s.id, token + "x")


async def test_insert_cards_is_all_or_nothing(store, owner):
    s = await store.create_set(owner, title="Batch")

    with pytest.raises(ValidationFailed):
        await store.insert_cards(owner, s.id, [("Q1", "A1"), ("Q2", "b" * 2001)])
    assert await store.list_cards(s.id) == []

    cards = await store.insert_cards(owner, s.id, [(" Q1 ", " A1 "), ("Q2", "A2")])
    assert [(c.front, c.back) for c in cards] == [("Q1", "A1"), ("Q2", "A2")]
    assert all(c.set_id == s.id for c in cards)


async def test_list_sets_counts_cards_newest_first(store, owner, stranger):
    first = await store.create_set(owner, title="First")
    second = await store.create_set(owner, title="Second")
    await store.create_set(stranger, title="Not mine")
    await store.insert_cards(owner, first.id, [("Q", "A"), ("Q2", "A2")])

    rows = await store.list_sets(owner)

    assert [(s.id, n) for s, n in rows] == [(second.id, 0), (first.id, 2)]


async def test_update_set_can_clear_description(store, owner):
    s = await store.create_set(owner, title="T", description="notes")
    s = await store.update_set(owner, s.id, emoji="🧬", clear_description=True)
    assert s.description is None
    assert s.emoji == "🧬"


async def test_delete_set_removes_its_cards(store, owner):
    s = await store.create_set(owner, title="Doomed")
    card = await store.create_card(owner, s.id, front="Q", back="A")

    await store.delete_set(owner, s.id)

    with pytest.raises(SetNotFound):
        await store.get_set(s.id)
    with pytest.raises(CardNotFound):
        await store.get_card(card.id)
