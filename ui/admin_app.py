"""
ui/admin_app.py
---------------
Admin back office (Streamlit).

    streamlit run ui/admin_app.py

The admin code entered at the gate is kept in the admin session and attached
to every privileged call. The session is re-checked every 60 s.
"""

import os
import sys

import streamlit as st

# Ensure project root is on sys.path when running via `streamlit run ui/admin_app.py`
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.append(ROOT_DIR)

from access.context import SessionContext
from access.resolver import verify_admin_code
from core.errors import AuthenticationError, ValidationError
from core.metadata import COPYRIGHT, __version__
from core.ui_helpers import get_context, show_flash
from ui.components.backend_status import render_status_bar
from ui.components.session_bar import render_admin_session_bar
from ui.views import analytics, glossary, issues, portfolios, resources, settings, stocks

st.set_page_config(page_title="CMS Admin", layout="wide", page_icon="🛠")

VIEWS = {
    "포트폴리오": portfolios.render,
    "종목": stocks.render,
    "이슈": issues.render,
    "용어집": glossary.render,
    "자료": resources.render,
    "통계": analytics.render,
    "설정": settings.render,
}


def render_admin_gate(ctx: SessionContext) -> None:
    st.title("🛠 CMS Admin")
    with st.form("admin_gate"):
        code = st.text_input("관리자 인증코드", type="password")
        submitted = st.form_submit_button("확인")
    if not submitted:
        return
    try:
        accepted = verify_admin_code(code)
    except (ValidationError, AuthenticationError) as e:
        st.error(str(e))
        return
    ctx.admin.login(accepted)
    ctx.save()
    st.rerun()


def main() -> None:
    ctx = get_context()
    if not ctx.admin.is_session_valid():
        if ctx.admin.is_authenticated:
            ctx.logout_admin()
        render_admin_gate(ctx)
        return

    render_admin_session_bar(ctx)
    show_flash()
    choice = st.sidebar.radio("메뉴", list(VIEWS))
    render_status_bar()
    st.sidebar.caption(f"v{__version__}")

    VIEWS[choice](ctx)

    ctx.save()
    st.markdown("---")
    st.caption(COPYRIGHT)


main()
