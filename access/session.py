"""
access/session.py
-----------------
Client-side expiring sessions.

- `ClientSession` : end-user session (1 hour), scoped to a resolved identity.
- `AdminSession`  : back-office session (2 hours), carries the admin code that
                    privileged Supabase calls attach as a header.

Validity is pull-based: callers ask `is_session_valid()`, and a periodic timer
calls `tick()`, which logs out the moment the session turns invalid.

Only the persisted subset of each session is serialized (`to_dict`), using the
same camelCase keys the storage has always used.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from core.config import (
    ADMIN_SESSION_DURATION_MS,
    CLIENT_SESSION_DURATION_MS,
    DEFAULT_CODE_VERSION,
)
from core.errors import BackendError
from core.schemas import AccessType, ClientInfo, Identity

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)


def format_remaining(ms: int) -> str:
    """Milliseconds -> 'MM:SS', clamped to '00:00'."""
    if ms <= 0:
        return "00:00"
    total_sec = ms // 1000
    return f"{total_sec // 60:02d}:{total_sec % 60:02d}"


class ExpiringSession:
    """Countdown shared by the client and admin sessions; subclasses extend `logout`."""

    duration_ms: int = CLIENT_SESSION_DURATION_MS

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or now_ms
        self.is_authenticated = False
        self.expires_at: Optional[int] = None

    def is_session_valid(self) -> bool:
        if not self.is_authenticated or not self.expires_at:
            return False
        return self._clock() < self.expires_at

    def remaining_ms(self) -> int:
        if not self.expires_at:
            return 0
        return max(0, self.expires_at - self._clock())

    def format_remaining_time(self) -> str:
        return format_remaining(self.remaining_ms())

    def tick(self) -> str:
        """Timer callback: force logout once expired, else return the countdown."""
        if not self.is_session_valid():
            if self.is_authenticated:
                logger.info("[Session] %s expired; logging out", type(self).__name__)
                self.logout()
            return "00:00"
        return self.format_remaining_time()

    def logout(self) -> None:
        self.is_authenticated = False
        self.expires_at = None

    def _renew(self) -> None:
        self.expires_at = self._clock() + self.duration_ms


class ClientSession(ExpiringSession):
    duration_ms = CLIENT_SESSION_DURATION_MS

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)
        self.code_version: Optional[str] = None
        self.access_type: Optional[AccessType] = None
        self.client_info: Optional[ClientInfo] = None
        self.client_ids: List[str] = []

    def login(self, identity: Identity, code_version: Optional[str] = None) -> None:
        self.is_authenticated = True
        self._renew()
        self.access_type = identity.access_type
        self.client_info = identity.client_info
        self.client_ids = list(identity.client_ids)
        self.code_version = code_version or DEFAULT_CODE_VERSION

    def logout(self) -> None:
        super().logout()
        self.code_version = None
        self.access_type = None
        self.client_info = None
        self.client_ids = []

    def extend_session(self, fetch_code_version: Callable[[], Optional[str]]) -> bool:
        """
        Re-validate the credential version, then push expiry out by one hour.

        Returns False (and logs out) when the server reports a different
        active version. A failing version check does not block the extension.
        """
        if not self.is_session_valid():
            return False
        try:
            server_version = fetch_code_version()
        except BackendError as e:
            logger.warning("[Session] code version check failed, extending anyway: %s", e)
        else:
            if (
                server_version is not None
                and self.code_version is not None
                and str(server_version) != self.code_version
            ):
                logger.info("[Session] code version changed (%s -> %s); forcing re-auth", self.code_version, server_version)
                self.logout()
                return False
        self._renew()
        return True

    @property
    def scope_client_id(self) -> Optional[str]:
        """Client id used to scope per-client data; only single sessions have one."""
        if self.access_type == AccessType.SINGLE and self.client_info:
            return self.client_info.id
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isAuthenticated": self.is_authenticated,
            "expiresAt": self.expires_at,
            "codeVersion": self.code_version,
            "accessType": self.access_type.value if self.access_type else None,
            "clientInfo": self.client_info.model_dump(by_alias=True) if self.client_info else None,
            "clientIds": list(self.client_ids),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], clock: Optional[Clock] = None) -> "ClientSession":
        session = cls(clock)
        if not data:
            return session
        session.is_authenticated = bool(data.get("isAuthenticated"))
        session.expires_at = data.get("expiresAt")
        session.code_version = data.get("codeVersion")
        access = data.get("accessType")
        session.access_type = AccessType(access) if access else None
        info = data.get("clientInfo")
        session.client_info = ClientInfo.model_validate(info) if info else None
        session.client_ids = list(data.get("clientIds") or [])
        return session


class AdminSession(ExpiringSession):
    duration_ms = ADMIN_SESSION_DURATION_MS

    def __init__(self, clock: Optional[Clock] = None):
        super().__init__(clock)
        self.admin_code: Optional[str] = None

    def login(self, admin_code: str) -> None:
        self.is_authenticated = True
        self._renew()
        self.admin_code = admin_code

    def logout(self) -> None:
        super().logout()
        self.admin_code = None

    def get_admin_code(self) -> str:
        return self.admin_code or ""

    def extend_session(self, verify_code: Callable[[str], bool]) -> bool:
        """Re-check the stored admin code before extending; revoked -> logout."""
        if not self.is_session_valid():
            return False
        try:
            still_valid = verify_code(self.get_admin_code())
        except BackendError as e:
            logger.warning("[AdminSession] code check failed, extending anyway: %s", e)
        else:
            if not still_valid:
                logger.info("[AdminSession] admin code revoked; forcing re-auth")
                self.logout()
                return False
        self._renew()
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isAuthenticated": self.is_authenticated,
            "expiresAt": self.expires_at,
            "adminCode": self.admin_code,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], clock: Optional[Clock] = None) -> "AdminSession":
        session = cls(clock)
        if data:
            session.is_authenticated = bool(data.get("isAuthenticated"))
            session.expires_at = data.get("expiresAt")
            session.admin_code = data.get("adminCode")
        return session
