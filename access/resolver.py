# access/resolver.py
"""
Password → identity resolution for the client dashboard, plus the admin code
check used by the back office and the backend's admin routes.

Lookup order is fixed: client passwords first, then shared passwords.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from core.config import DEFAULT_CODE_VERSION
from core.errors import (
    AUTH_FAILURE_MESSAGE,
    INVALID_ADMIN_CODE_MESSAGE,
    AuthenticationError,
    BackendError,
    ValidationError,
)
from core.schemas import AccessType, ClientInfo, Identity
from supabase_client import queries

logger = logging.getLogger(__name__)


def resolve_password(secret: Optional[str], client: Any = None) -> Identity:
    """
    Resolve a typed password to an access identity.

    Raises
    ------
    ValidationError
        Blank input (checked before any backend call).
    AuthenticationError
        No active client or shared password matches, or the lookup failed.
    """
    password = (secret or "").strip()
    if not password:
        raise ValidationError("비밀번호를 입력해주세요.")

    try:
        row = queries.find_active_client_by_password(password, client=client)
        if row:
            return Identity(
                access_type=AccessType.SINGLE,
                client_info=ClientInfo(
                    id=str(row["id"]),
                    name=row.get("name") or "",
                    logo=row.get("logo_url"),
                    brand_color=row.get("brand_color"),
                ),
            )

        shared = queries.find_active_shared_password(password, client=client)
    except BackendError as e:
        logger.error("[Access] password lookup failed: %s", e)
        raise AuthenticationError(AUTH_FAILURE_MESSAGE) from e

    if not shared:
        raise AuthenticationError()

    info = ClientInfo(
        id=str(shared["id"]),
        name=shared.get("name") or "",
        brand_color=shared.get("brand_color"),
    )
    if shared.get("is_master"):
        return Identity(access_type=AccessType.MASTER, client_info=info)

    client_ids = [str(c) for c in shared.get("client_ids") or []]
    if not client_ids:
        logger.warning("[Access] shared password %s has no clients; rejecting", info.id)
        raise AuthenticationError()
    return Identity(access_type=AccessType.SHARED, client_info=info, client_ids=client_ids)


def current_code_version(client: Any = None) -> str:
    """Active code version at login time; the default when the backend can't say."""
    try:
        version = queries.get_active_code_version(client=client)
    except BackendError as e:
        logger.warning("[Access] could not read code version: %s", e)
        return DEFAULT_CODE_VERSION
    return version or DEFAULT_CODE_VERSION


def verify_admin_code(code: Optional[str], client: Any = None) -> str:
    """Return the stripped code when the backend accepts it."""
    candidate = (code or "").strip()
    if not candidate:
        raise ValidationError("인증코드를 입력해주세요.")
    try:
        ok = queries.verify_admin_code(candidate, client=client)
    except BackendError as e:
        logger.error("[Access] admin code check failed: %s", e)
        raise AuthenticationError(AUTH_FAILURE_MESSAGE) from e
    if not ok:
        raise AuthenticationError(INVALID_ADMIN_CODE_MESSAGE)
    return candidate
