"""
supabase_client/config.py
-------------------------
Supabase client factory.

Two flavours:
- `get_supabase_client()`          : anon client for public reads and client-side RPCs.
- `get_admin_supabase_client(code)`: same project, but every request carries the
                                     `x-admin-code` header that privileged RPCs check.
"""

from __future__ import annotations

from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from core.config import ADMIN_CODE_HEADER, get_settings


def _credentials() -> tuple[str, str]:
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_anon_key:
        raise RuntimeError("Supabase credentials not set in environment variables.")
    return settings.supabase_url, settings.supabase_anon_key


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """Return the shared anon Supabase client."""
    url, key = _credentials()
    return create_client(url, key)


@lru_cache(maxsize=4)
def get_admin_supabase_client(admin_code: str) -> Client:
    """Return a client that attaches the admin secret to every request."""
    url, key = _credentials()
    options = ClientOptions(headers={ADMIN_CODE_HEADER: admin_code or ""})
    return create_client(url, key, options=options)
