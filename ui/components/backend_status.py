# ui/components/backend_status.py
"""
Backend health indicator for the admin sidebar.

Reads `/health` from the FastAPI backend, validates it with a pydantic
schema and caches the result for a minute. Never raises into the page.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests
import streamlit as st
from pydantic import BaseModel, Field

from core.config import get_settings

CACHE_TTL = 60  # seconds

STATUS_COLORS = {
    "ok": "green",
    "degraded": "orange",
    "error": "red",
    "offline": "red",
}


class HealthSchema(BaseModel):
    """Structured schema for the /health endpoint response."""
    status: str = Field(default="unknown")
    message: Optional[str] = None
    version: Optional[str] = None
    supabase_connected: Optional[bool] = None
    cpu_load: Optional[float] = None
    memory_usage: Optional[float] = None
    latency_ms: Optional[float] = None


def get_status_color(status: str) -> str:
    return STATUS_COLORS.get(status.lower(), "gray")


@st.cache_data(ttl=CACHE_TTL)
def get_backend_status() -> Dict[str, Any]:
    url = f"{get_settings().backend_url}/health"
    try:
        resp = requests.get(url, timeout=5)
    except requests.RequestException as e:
        return {"status": "offline", "message": f"Backend unreachable ({e.__class__.__name__})"}

    if resp.status_code != 200:
        return {"status": "error", "message": f"HTTP {resp.status_code}"}

    data = resp.json()
    data["latency_ms"] = round(resp.elapsed.total_seconds() * 1000, 2)
    return HealthSchema(**data).model_dump()


def render_status_bar() -> None:
    health = get_backend_status()
    status = health.get("status", "unknown")

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        f"<span style='color:{get_status_color(status)}; font-weight:600;'>● {status.upper()}</span>",
        unsafe_allow_html=True,
    )
    if health.get("message"):
        st.sidebar.caption(health["message"])
    st.sidebar.caption("Supabase: " + ("connected" if health.get("supabase_connected") else "unavailable"))
