from types import SimpleNamespace

import pytest

from flashdeck.core.errors import AuthorizationDenied, PersistenceFailure
from flashdeck.modules.access import Viewer
from flashdeck.modules.sharing import SharingController, share_url

ORIGIN = "https://flashdeck.example"


def test_share_url():
    assert share_url(ORIGIN + "/", 5, "abc") == f"{ORIGIN}/set/5?token=abc"
    assert share_url(ORIGIN, 5, None) is None
    assert share_url(ORIGIN, 5, "") is None


async def test_enable_disable_reenable(store, owner):
    s = await store.create_set(owner, title="Shared")
    ctl = SharingController(store, owner, origin=ORIGIN)

    enabled = await ctl.enable_sharing(s.id)
    assert enabled.is_public is True
    assert enabled.share_token
    assert enabled.share_url == f"{ORIGIN}/set/{s.id}?token={enabled.share_token}"

    # Enabling again keeps the link stable
    again = await ctl.enable_sharing(s.id)
    assert again.share_token == enabled.share_token

    disabled = await ctl.disable_sharing(s.id)
    assert disabled.is_public is False
    assert disabled.share_token is None
    assert disabled.share_url is None

    reenabled = await ctl.set_sharing(s.id, True)
    assert reenabled.share_token
    assert reenabled.share_token != enabled.share_token

    persisted = await store.get_set(s.id)
    assert (persisted.is_public, persisted.share_token) == (True, reenabled.share_token)


async def test_only_owner_can_toggle(store, owner, stranger):
    s = await store.create_set(owner, title="Mine")
    with pytest.raises(AuthorizationDenied):
        await SharingController(store, stranger).enable_sharing(s.id)
    assert (await store.get_set(s.id)).is_public is False


class _FailingStore:
    """Accepts reads, fails the sharing write."""

    def __init__(self, persisted):
        self.persisted = persisted
        self.updates = []

    async def get_owned_set(self, viewer, set_id):
        return self.persisted

    async def get_set(self, set_id):
        return self.persisted

    async def generate_share_token(self):
        return "fresh-token"

    async def update_sharing(self, viewer, set_id, *, is_public, share_token):
        self.updates.append((is_public, share_token))
        raise PersistenceFailure()


async def test_failed_enable_reports_persisted_state():
    persisted = SimpleNamespace(id=3, user_id=1, is_public=False, share_token=None)
    store = _FailingStore(persisted)
    ctl = SharingController(store, Viewer(user_id=1), origin=ORIGIN)

    with pytest.raises(PersistenceFailure):
        await ctl.enable_sharing(3)

    assert store.updates == [(True, "fresh-token")]
    assert ctl.state.is_public is False
    assert ctl.state.share_token is None
    assert ctl.state.share_url is None


async def test_failed_disable_keeps_link_visible():
    persisted = SimpleNamespace(id=3, user_id=1, is_public=True, share_token="live")
    ctl = SharingController(_FailingStore(persisted), Viewer(user_id=1), origin=ORIGIN)

    with pytest.raises(PersistenceFailure):
        await ctl.disable_sharing(3)

    assert ctl.state.is_public is True
    assert ctl.state.share_url == f"{ORIGIN}/set/3?token=live"
