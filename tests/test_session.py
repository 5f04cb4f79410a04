import pytest

from access.session import AdminSession, ClientSession, ExpiringSession, format_remaining
from core.config import ADMIN_SESSION_DURATION_MS, CLIENT_SESSION_DURATION_MS
from core.errors import BackendError
from core.schemas import AccessType, ClientInfo, Identity

SINGLE = Identity(
    access_type=AccessType.SINGLE,
    client_info=ClientInfo(id="c1", name="Alpha", brand_color="#123456"),
)
SHARED = Identity(access_type=AccessType.SHARED, client_info=ClientInfo(id="sp1", name="Desk"), client_ids=["c1", "c2"])


def _raise_backend(*_):
    raise BackendError("rpc get_active_code_version", RuntimeError("down"))


@pytest.mark.parametrize(
    "ms, text",
    [(0, "00:00"), (-5, "00:00"), (999, "00:00"), (61_000, "01:01"), (CLIENT_SESSION_DURATION_MS, "60:00")],
)
def test_format_remaining(ms, text):
    assert format_remaining(ms) == text


def test_client_login_sets_one_hour_expiry(clock):
    session = ClientSession(clock)
    assert not session.is_session_valid()

    session.login(SINGLE, "7")

    assert session.is_session_valid()
    assert session.expires_at == clock() + CLIENT_SESSION_DURATION_MS
    assert session.code_version == "7"
    assert session.scope_client_id == "c1"
    assert session.format_remaining_time() == "60:00"


def test_client_login_defaults_code_version(clock):
    session = ClientSession(clock)
    session.login(SHARED, None)
    assert session.code_version == "1"
    assert session.scope_client_id is None
    assert session.client_ids == ["c1", "c2"]


def test_tick_logs_out_after_expiry(clock):
    session = ClientSession(clock)
    session.login(SINGLE, "1")
    clock.advance(CLIENT_SESSION_DURATION_MS - 1000)
    assert session.tick() == "00:01"

    clock.advance(1000)

    assert session.tick() == "00:00"
    assert not session.is_authenticated
    assert session.access_type is None
    assert session.client_info is None


def test_extend_session_renews_when_version_matches(clock):
    session = ClientSession(clock)
    session.login(SINGLE, "3")
    clock.advance(30 * 60 * 1000)

    assert session.extend_session(lambda: "3") is True
    assert session.expires_at == clock() + CLIENT_SESSION_DURATION_MS


def test_extend_session_forces_logout_on_version_change(clock):
    session = ClientSession(clock)
    session.login(SINGLE, "3")

    assert session.extend_session(lambda: "4") is False
    assert not session.is_authenticated


def test_extend_session_tolerates_backend_failure(clock):
    session = ClientSession(clock)
    session.login(SINGLE, "3")
    clock.advance(1000)

    assert session.extend_session(_raise_backend) is True
    assert session.expires_at == clock() + CLIENT_SESSION_DURATION_MS


def test_extend_session_ignores_null_server_version(clock):
    session = ClientSession(clock)
    session.login(SINGLE, "3")
    assert session.extend_session(lambda: None) is True


def test_extend_expired_session_is_refused(clock):
    session = ClientSession(clock)
    session.login(SINGLE, "3")
    clock.advance(CLIENT_SESSION_DURATION_MS)
    assert session.extend_session(lambda: "3") is False


def test_client_session_round_trip_keeps_camel_case_keys(clock):
    session = ClientSession(clock)
    session.login(SINGLE, "2")

    data = session.to_dict()
    assert data["accessType"] == "single"
    assert data["clientInfo"]["brandColor"] == "#123456"

    restored = ClientSession.from_dict(data, clock=clock)
    assert restored.is_session_valid()
    assert restored.client_info == SINGLE.client_info
    assert restored.code_version == "2"


def test_admin_session_lifecycle(clock):
    session = AdminSession(clock)
    assert session.get_admin_code() == ""

    session.login("ADMIN-1")
    assert session.get_admin_code() == "ADMIN-1"
    assert session.remaining_ms() == ADMIN_SESSION_DURATION_MS

    clock.advance(ADMIN_SESSION_DURATION_MS)
    assert session.tick() == "00:00"
    assert session.get_admin_code() == ""


def test_admin_extend_revalidates_code(clock):
    session = AdminSession(clock)
    session.login("ADMIN-1")
    seen = []

    assert session.extend_session(lambda code: seen.append(code) or True) is True
    assert seen == ["ADMIN-1"]

    assert session.extend_session(lambda code: False) is False
    assert not session.is_authenticated


def test_admin_extend_tolerates_backend_failure(clock):
    session = AdminSession(clock)
    session.login("ADMIN-1")
    clock.advance(5000)
    assert session.extend_session(_raise_backend) is True
    assert session.remaining_ms() == ADMIN_SESSION_DURATION_MS


def test_admin_session_round_trip(clock):
    session = AdminSession(clock)
    session.login("ADMIN-1")
    restored = AdminSession.from_dict(session.to_dict(), clock=clock)
    assert restored.is_session_valid()
    assert restored.get_admin_code() == "ADMIN-1"
    assert AdminSession.from_dict(None, clock=clock).is_authenticated is False


def test_base_session_logout_clears_expiry(clock):
    session = ExpiringSession(clock)
    session.is_authenticated = True
    session._renew()
    clock.advance(session.duration_ms)

    assert session.tick() == "00:00"
    assert not session.is_authenticated
    assert session.expires_at is None
