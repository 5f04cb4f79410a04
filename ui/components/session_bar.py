# ui/components/session_bar.py
"""
Session countdown + extend/logout controls.

The client bar re-runs the script every second and the admin bar every
minute (streamlit-autorefresh); each run calls `tick()`, which logs out as
soon as the session has expired.
"""

from __future__ import annotations

import streamlit as st
from streamlit_autorefresh import st_autorefresh

from access.context import SessionContext
from core.config import ADMIN_TIMER_INTERVAL_MS, CLIENT_TIMER_INTERVAL_MS
from core.ui_helpers import flash
from supabase_client import queries


def render_client_session_bar(ctx: SessionContext) -> None:
    st_autorefresh(interval=CLIENT_TIMER_INTERVAL_MS, key="client_session_timer")

    remaining = ctx.client.tick()
    if not ctx.client.is_authenticated:
        ctx.logout_client()
        st.rerun()

    info = ctx.client.client_info
    left, mid, right = st.columns([6, 2, 2])
    left.markdown(f"**{info.name if info else ''}**")
    mid.markdown(f"⏱ `{remaining}`")
    with right:
        c1, c2 = st.columns(2)
        if c1.button("연장", key="extend_client_session"):
            if ctx.client.extend_session(queries.get_active_code_version):
                flash("세션이 1시간 연장되었습니다.")
            ctx.save()
            st.rerun()
        if c2.button("로그아웃", key="logout_client"):
            ctx.logout_client()
            st.rerun()


def render_admin_session_bar(ctx: SessionContext) -> None:
    st_autorefresh(interval=ADMIN_TIMER_INTERVAL_MS, key="admin_session_timer")

    remaining = ctx.admin.tick()
    if not ctx.admin.is_authenticated:
        ctx.logout_admin()
        st.rerun()

    st.sidebar.markdown(f"**관리자 세션** ⏱ `{remaining}`")
    c1, c2 = st.sidebar.columns(2)
    if c1.button("연장", key="extend_admin_session"):
        if ctx.admin.extend_session(queries.verify_admin_code):
            flash("관리자 세션이 2시간 연장되었습니다.")
        ctx.save()
        st.rerun()
    if c2.button("로그아웃", key="logout_admin"):
        ctx.logout_admin()
        st.rerun()
