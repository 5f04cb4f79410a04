# supabase_client/helpers.py
"""
Utility layer for interacting with Supabase.

Features
--------
- Single choke point (`execute`) for every table / RPC call: failures are
  logged with the action name and re-raised as `core.errors.BackendError`.
- `call_rpc` for named remote procedures.
- `test_connection` for the health endpoint.

Callers decide how to surface a `BackendError` (toast, HTTP status, fail-open).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from core.errors import BackendError
from supabase_client.config import get_supabase_client

logger = logging.getLogger(__name__)


def execute(query: Any, action: str) -> Any:
    """
    Execute a postgrest builder (table query or RPC) and return the response.

    Parameters
    ----------
    query : builder
        Anything with an ``execute()`` method.
    action : str
        Human-readable label used in logs and in the raised error.
    """
    try:
        res = query.execute()
    except Exception as e:  # noqa: BLE001 - any client/transport error is a backend error
        logger.error("[Supabase] %s failed: %s: %s", action, type(e).__name__, e)
        raise BackendError(action, e) from e
    logger.debug("[Supabase] %s ok", action)
    return res


def call_rpc(client: Any, fn: str, params: Optional[Dict[str, Any]] = None) -> Any:
    """Call a named remote procedure and return its `data` payload."""
    res = execute(client.rpc(fn, params or {}), f"rpc {fn}")
    return res.data


def test_connection() -> Optional[str]:
    """
    Verify Supabase client connectivity.

    Returns
    -------
    Optional[str]
        Supabase project URL if success, None if failure.
    """
    try:
        sb = get_supabase_client()
        execute(sb.table("stocks").select("id").limit(1), "connection check")
        return sb.supabase_url
    except (RuntimeError, BackendError) as e:
        logger.warning("[Supabase] Connection failed: %s", e)
        return None
