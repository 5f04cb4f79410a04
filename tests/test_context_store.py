import pytest

from access.context import SessionContext
from core.config import AUTH_STORAGE_KEY
from core.schemas import AccessType, ClientInfo, Identity
from database.db_setup import get_engine
from database.queries import MemoryStateStore, SqlStateStore

IDENTITY = Identity(access_type=AccessType.SINGLE, client_info=ClientInfo(id="c1", name="Alpha"))


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryStateStore()
    return SqlStateStore(get_engine(str(tmp_path / "state.db")))


def test_store_put_get_delete(store):
    assert store.get("k") is None
    store.put("k", {"a": 1, "nested": {"b": [1, 2]}})
    assert store.get("k") == {"a": 1, "nested": {"b": [1, 2]}}

    store.put("k", {"a": 2})
    assert store.get("k") == {"a": 2}

    assert store.delete("k") is True
    assert store.delete("k") is False
    assert store.get("k") is None


def test_memory_store_copies_values():
    store = MemoryStateStore()
    value = {"list": [1]}
    store.put("k", value)
    value["list"].append(2)
    assert store.get("k") == {"list": [1]}


def test_context_survives_reload(store, clock):
    ctx = SessionContext(store, clock=clock)
    ctx.client.login(IDENTITY, "4")
    ctx.admin.login("ADMIN-1")
    ctx.ui.toggle_dark_mode()
    ctx.save()

    reloaded = SessionContext(store, clock=clock)

    assert reloaded.client.is_session_valid()
    assert reloaded.client.code_version == "4"
    assert reloaded.admin.get_admin_code() == "ADMIN-1"
    assert reloaded.ui.is_dark_mode is True


def test_namespaces_are_isolated(store, clock):
    first = SessionContext(store, clock=clock, namespace="browser-a")
    first.client.login(IDENTITY)
    first.save()

    other = SessionContext(store, clock=clock, namespace="browser-b")

    assert not other.client.is_authenticated
    assert store.get(f"browser-a:{AUTH_STORAGE_KEY}")["isAuthenticated"] is True
    assert store.get(AUTH_STORAGE_KEY) is None


def test_logout_client_resets_ui_and_persists(store, clock):
    ctx = SessionContext(store, clock=clock)
    ctx.client.login(IDENTITY)
    ctx.ui.select_stock("s1")
    ctx.admin.login("ADMIN-1")

    ctx.logout_client()

    reloaded = SessionContext(store, clock=clock)
    assert not reloaded.client.is_authenticated
    assert reloaded.admin.is_authenticated
    assert ctx.ui.selected_stock_id is None

    ctx.logout_admin()
    assert not SessionContext(store, clock=clock).admin.is_authenticated
