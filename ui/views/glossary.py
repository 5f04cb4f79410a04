# ui/views/glossary.py
"""Glossary terms."""

from __future__ import annotations

import streamlit as st

from access.context import SessionContext
from core.errors import BackendError
from core.ui_helpers import notify_error, run_action
from supabase_client import mutations, queries
from ui.views.common import admin_client, refresh


def render(ctx: SessionContext) -> None:
    st.header("용어집")
    code = ctx.admin.get_admin_code()
    sb = admin_client(ctx)
    try:
        terms = queries.fetch_glossary_list(client=sb)
    except BackendError as e:
        notify_error(e, "용어집 불러오기")
        return

    with st.form("add_term", clear_on_submit=True):
        c1, c2 = st.columns([1, 3])
        term = c1.text_input("용어")
        definition = c2.text_input("설명")
        if st.form_submit_button("추가") and run_action(
            "용어 추가", lambda: mutations.add_glossary_term(code, term, definition, client=sb), success="추가되었습니다."
        ):
            refresh()

    for t in terms:
        c1, c2, c3, c4 = st.columns([2, 6, 1, 1])
        c1.markdown(f"**{t.term}**")
        definition = c2.text_input("설명", t.definition, key=f"def_{t.term}", label_visibility="collapsed")
        if c3.button("저장", key=f"save_{t.term}") and run_action(
            "용어 수정", lambda: mutations.update_glossary_term(code, t.term, definition, client=sb), success="저장되었습니다."
        ):
            refresh()
        if c4.button("삭제", key=f"del_{t.term}") and run_action(
            "용어 삭제", lambda: mutations.delete_glossary_term(code, t.term, client=sb), success="삭제되었습니다."
        ):
            refresh()
