# ui/views/settings.py
"""Clients, shared passwords and admin access codes."""

from __future__ import annotations

from typing import List, Optional

import streamlit as st

from access.context import SessionContext
from core.errors import BackendError
from core.schemas import Client, SharedPassword
from core.ui_helpers import notify_error, run_action
from supabase_client import mutations, queries
from ui.views.common import admin_client, refresh

DEFAULT_BRAND_COLOR = "#1e3a5f"


def render_clients(ctx: SessionContext, clients: List[Client]) -> None:
    code, sb = ctx.admin.get_admin_code(), admin_client(ctx)
    st.subheader("소속 (개별 비밀번호)")
    with st.form("add_client", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        name = c1.text_input("소속명")
        password = c2.text_input("비밀번호")
        color = c3.color_picker("브랜드 색상", DEFAULT_BRAND_COLOR)
        if st.form_submit_button("추가") and run_action(
            "소속 추가", lambda: mutations.add_client(code, name, password, color, client=sb), success="추가되었습니다."
        ):
            refresh()

    for c in clients:
        with st.expander(f"{'🟢' if c.is_active else '⚪'} {c.name}  ({c.code})"):
            with st.form(f"client_{c.id}"):
                name = st.text_input("소속명", c.name)
                password = st.text_input("비밀번호", c.password or "")
                color = st.color_picker("브랜드 색상", c.brand_color or DEFAULT_BRAND_COLOR)
                active = st.checkbox("활성", value=c.is_active)
                if st.form_submit_button("저장") and run_action(
                    "소속 수정",
                    lambda: mutations.update_client(code, c.id, name, password, color, active, client=sb),
                    success="저장되었습니다.",
                ):
                    refresh()
            if st.button("삭제", key=f"delete_client_{c.id}") and run_action(
                "소속 삭제", lambda: mutations.delete_client(code, c.id, client=sb), success="삭제되었습니다."
            ):
                refresh()


def _shared_form(ctx: SessionContext, clients: List[Client], sp: Optional[SharedPassword] = None) -> None:
    code, sb = ctx.admin.get_admin_code(), admin_client(ctx)
    names = {c.id: c.name for c in clients}
    key = sp.id if sp else "new"
    with st.form(f"shared_{key}", clear_on_submit=sp is None):
        name = st.text_input("이름", sp.name if sp else "")
        password = st.text_input("비밀번호", sp.password if sp else "")
        is_master = st.checkbox("마스터 (전체 포트폴리오)", value=sp.is_master if sp else False)
        client_ids = st.multiselect(
            "접근 가능한 소속", list(names), default=sp.client_ids if sp else [], format_func=names.get
        )
        active = st.checkbox("활성", value=sp.is_active if sp else True)
        if not st.form_submit_button("저장" if sp else "추가"):
            return
    if sp is None:
        ok = run_action(
            "공용 비밀번호 추가",
            lambda: mutations.add_shared_password(code, name, password, is_master, client_ids, client=sb),
            success="추가되었습니다.",
        )
    else:
        ok = run_action(
            "공용 비밀번호 수정",
            lambda: mutations.update_shared_password(
                code, sp.id, name, password, is_master, client_ids, sp.brand_color, active, client=sb
            ),
            success="저장되었습니다.",
        )
    if ok:
        refresh()


def render_shared_passwords(ctx: SessionContext, clients: List[Client], shared: List[SharedPassword]) -> None:
    code, sb = ctx.admin.get_admin_code(), admin_client(ctx)
    st.subheader("공용 비밀번호")
    with st.expander("➕ 공용 비밀번호 추가"):
        _shared_form(ctx, clients)
    for sp in shared:
        label = "마스터" if sp.is_master else f"{len(sp.client_ids)}개 소속"
        with st.expander(f"{'🟢' if sp.is_active else '⚪'} {sp.name}  ·  {label}"):
            _shared_form(ctx, clients, sp)
            if st.button("삭제", key=f"delete_shared_{sp.id}") and run_action(
                "공용 비밀번호 삭제", lambda: mutations.delete_shared_password(code, sp.id, client=sb), success="삭제되었습니다."
            ):
                refresh()


def render_access_codes(ctx: SessionContext) -> None:
    code, sb = ctx.admin.get_admin_code(), admin_client(ctx)
    st.subheader("관리자 인증코드")
    try:
        codes = queries.fetch_access_codes(admin_only=True, client=sb)
    except BackendError as e:
        notify_error(e, "인증코드 불러오기")
        return

    with st.form("add_code", clear_on_submit=True):
        new_code = st.text_input("새 인증코드")
        if st.form_submit_button("추가") and run_action(
            "인증코드 추가", lambda: mutations.add_access_code(code, new_code, True, client=sb), success="추가되었습니다."
        ):
            refresh()

    for ac in codes:
        c1, c2, c3 = st.columns([6, 2, 2])
        c1.markdown(f"`{ac.code}` {'🟢' if ac.is_active else '⚪'}" + (f"  · 만료 {ac.expires_at}" if ac.expires_at else ""))
        if c2.button("활성/비활성", key=f"toggle_code_{ac.id}") and run_action(
            "인증코드 전환", lambda: mutations.toggle_access_code(code, ac.id, client=sb)
        ):
            refresh()
        if c3.button("삭제", key=f"delete_code_{ac.id}") and run_action(
            "인증코드 삭제", lambda: mutations.delete_access_code(code, ac.id, client=sb), success="삭제되었습니다."
        ):
            refresh()


def render(ctx: SessionContext) -> None:
    st.header("설정")
    sb = admin_client(ctx)
    try:
        clients = queries.fetch_clients(client=sb)
        shared = queries.fetch_shared_passwords(client=sb)
    except BackendError as e:
        notify_error(e, "설정 불러오기")
        return

    tab_clients, tab_shared, tab_codes = st.tabs(["소속", "공용 비밀번호", "관리자 코드"])
    with tab_clients:
        render_clients(ctx, clients)
    with tab_shared:
        render_shared_passwords(ctx, clients, shared)
    with tab_codes:
        render_access_codes(ctx)
