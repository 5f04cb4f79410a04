# ui/views/resources.py
"""Downloadable resources: upload per client or public, delete."""

from __future__ import annotations

import streamlit as st

from access.context import SessionContext
from core.errors import BackendError
from core.ui_helpers import notify_error, run_action
from supabase_client import mutations, queries
from supabase_client.mutations import ImageUpload
from ui.views.common import admin_client, refresh

FILE_TYPES = ["PDF", "EXCEL", "PPT", "WORD", "기타"]


def render(ctx: SessionContext) -> None:
    st.header("자료")
    code = ctx.admin.get_admin_code()
    sb = admin_client(ctx)
    try:
        resources = queries.fetch_all_resources(client=sb)
        clients = queries.fetch_clients(client=sb)
    except BackendError as e:
        notify_error(e, "자료 불러오기")
        return

    scopes = {"": "전체 공개", **{c.id: c.name for c in clients}}
    with st.expander("➕ 자료 업로드"):
        with st.form("add_resource", clear_on_submit=True):
            title = st.text_input("제목")
            description = st.text_area("설명")
            c1, c2, c3 = st.columns(3)
            file_type = c1.selectbox("형식", FILE_TYPES)
            category = c2.text_input("분류", placeholder="기타")
            client_id = c3.selectbox("공개 대상", list(scopes), format_func=scopes.get)
            upload = st.file_uploader("파일")
            if st.form_submit_button("업로드") and run_action(
                "자료 업로드",
                lambda: mutations.add_resource(
                    code,
                    title,
                    ImageUpload(upload.name, upload.getvalue(), upload.type or "application/octet-stream") if upload else None,
                    description=description,
                    file_type=file_type,
                    category=category,
                    client_id=client_id or None,
                    client=sb,
                ),
                success="자료가 등록되었습니다.",
            ):
                refresh()

    if not resources:
        st.info("등록된 자료가 없습니다.")
        return
    for r in resources:
        cols = st.columns([5, 3, 2, 1])
        cols[0].markdown(f"**{r.title}**  \n{r.description}")
        cols[1].caption(f"{r.file_type} · {r.category} · {r.date} · {r.file_size}")
        cols[2].caption(scopes.get(r.client_id or "", r.client_id or ""))
        if cols[3].button("삭제", key=f"delete_resource_{r.id}") and run_action(
            "자료 삭제",
            lambda: mutations.delete_resource(code, r.id, r.file_url, client=sb),
            success="삭제되었습니다.",
        ):
            refresh()
