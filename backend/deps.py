"""
Shared FastAPI dependencies.

Tests swap the Supabase clients through `app.dependency_overrides`.
"""

from __future__ import annotations

from typing import Any

from fastapi import Depends, Header

from access.resolver import verify_admin_code
from core.config import ADMIN_CODE_HEADER
from supabase_client.config import get_admin_supabase_client, get_supabase_client


def get_client() -> Any:
    return get_supabase_client()


def require_admin_code(
    admin_code: str = Header(..., alias=ADMIN_CODE_HEADER),
    sb: Any = Depends(get_client),
) -> str:
    """Reject the request unless the header carries a valid admin code."""
    return verify_admin_code(admin_code, client=sb)


def get_admin_client(admin_code: str = Depends(require_admin_code)) -> Any:
    return get_admin_supabase_client(admin_code)
