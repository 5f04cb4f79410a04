# ui/views/common.py
"""Helpers shared by the admin views."""

from __future__ import annotations

from typing import Any

import streamlit as st

from access.context import SessionContext
from supabase_client.config import get_admin_supabase_client


def admin_client(ctx: SessionContext) -> Any:
    return get_admin_supabase_client(ctx.admin.get_admin_code())


def refresh() -> None:
    """Drop cached reads and re-run after a successful write."""
    st.cache_data.clear()
    st.rerun()
