"""
core/ui_helpers.py
------------------
Shared helpers for the Streamlit apps.

- `get_context()` : one SessionContext per browser, backed by the SQLite store.
- `run_action()`  : uniform error surfacing for button handlers.
- `fetch_backend()` / `post_backend()` : calls into the FastAPI backend.

Backend failures become a toast and a log line; validation problems become an
inline `st.error`.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Callable, Dict, Optional

import requests
import streamlit as st

from access.context import SessionContext
from core.config import ADMIN_CODE_HEADER, get_settings
from core.errors import AuthenticationError, BackendError, CMSError, ValidationError
from core.logging_config import configure_logging
from database.queries import SqlStateStore

logger = logging.getLogger(__name__)

SESSION_PARAM = "sid"


@st.cache_resource
def _state_store() -> SqlStateStore:
    configure_logging()
    return SqlStateStore()


def get_context() -> SessionContext:
    """Return this browser's SessionContext, restoring persisted state on first use."""
    if "cms_context" not in st.session_state:
        sid = st.query_params.get(SESSION_PARAM)
        if not sid:
            sid = uuid.uuid4().hex
            st.query_params[SESSION_PARAM] = sid
        st.session_state.cms_context = SessionContext(_state_store(), namespace=sid)
    return st.session_state.cms_context


def notify_error(exc: CMSError, action: str) -> None:
    if isinstance(exc, ValidationError):
        st.error(str(exc))
        return
    logger.error("[UI] %s failed: %s", action, exc)
    st.toast(str(exc) if isinstance(exc, AuthenticationError) else f"{action} 실패: {exc}", icon="⚠️")


def flash(message: str) -> None:
    """Queue a toast for the next run (survives `st.rerun()`)."""
    st.session_state["_flash"] = message


def show_flash() -> None:
    message = st.session_state.pop("_flash", None)
    if message:
        st.toast(message, icon="✅")


def run_action(action: str, fn: Callable[[], Any], success: Optional[str] = None) -> bool:
    """Run a handler; False after surfacing its error."""
    try:
        fn()
    except CMSError as e:
        notify_error(e, action)
        return False
    if success:
        flash(success)
    return True


# ---------------------------------------------------------------------------
# Backend API
# ---------------------------------------------------------------------------

def _url(endpoint: str) -> str:
    return f"{get_settings().backend_url}/{endpoint.lstrip('/')}"


def _headers(admin_code: Optional[str]) -> Dict[str, str]:
    return {ADMIN_CODE_HEADER: admin_code} if admin_code else {}


def _raise_for(resp: requests.Response, action: str) -> None:
    if resp.status_code == 400:
        raise ValidationError(resp.json().get("detail", "잘못된 요청입니다."))
    if resp.status_code == 401:
        raise AuthenticationError(resp.json().get("detail"))
    try:
        resp.raise_for_status()
    except requests.HTTPError as e:
        raise BackendError(action, e) from e


def fetch_backend(endpoint: str, params: Optional[dict] = None, admin_code: Optional[str] = None) -> Any:
    """GET a backend endpoint and return its JSON body."""
    try:
        resp = requests.get(_url(endpoint), params=params, headers=_headers(admin_code), timeout=10)
    except requests.RequestException as e:
        raise BackendError(f"GET {endpoint}", e) from e
    _raise_for(resp, f"GET {endpoint}")
    return resp.json()


def post_backend(
    endpoint: str,
    payload: Optional[dict] = None,
    files: Optional[dict] = None,
    admin_code: Optional[str] = None,
) -> Any:
    """POST JSON or a multipart upload to the backend."""
    try:
        resp = requests.post(
            _url(endpoint),
            json=payload if files is None else None,
            files=files,
            headers=_headers(admin_code),
            timeout=60,
        )
    except requests.RequestException as e:
        raise BackendError(f"POST {endpoint}", e) from e
    _raise_for(resp, f"POST {endpoint}")
    return resp.json()
