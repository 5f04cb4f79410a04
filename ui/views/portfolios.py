# ui/views/portfolios.py
"""Portfolio management: create, edit, activate, membership."""

from __future__ import annotations

from typing import Dict, List, Optional

import streamlit as st

from access.context import SessionContext
from core.errors import BackendError
from core.schemas import Client, Portfolio, Stock
from core.ui_helpers import notify_error, run_action
from supabase_client import mutations, queries
from ui.views.common import admin_client, refresh


def _client_picker(label: str, clients: List[Client], current: Optional[str], key: str) -> Optional[str]:
    options: Dict[str, Optional[str]] = {"(공용)": None}
    options.update({c.name: c.id for c in clients})
    names = list(options)
    index = next((i for i, n in enumerate(names) if options[n] == current), 0)
    return options[st.selectbox(label, names, index=index, key=key)]


def _membership(ctx: SessionContext, portfolio: Portfolio, all_stocks: List[Stock], current_ids: List[str]) -> None:
    labels = {s.id: f"{s.name_kr or s.name} ({s.ticker})" for s in all_stocks}
    selected = st.multiselect(
        "편입 종목",
        list(labels),
        default=[sid for sid in current_ids if sid in labels],
        format_func=labels.get,
        key=f"members_{portfolio.id}",
    )
    if not st.button("종목 구성 저장", key=f"save_members_{portfolio.id}"):
        return
    code = ctx.admin.get_admin_code()
    sb = admin_client(ctx)

    def apply() -> None:
        for sid in set(selected) - set(current_ids):
            mutations.set_portfolio_stock(code, portfolio.id, sid, True, client=sb)
        for sid in set(current_ids) - set(selected):
            mutations.set_portfolio_stock(code, portfolio.id, sid, False, client=sb)

    if run_action("종목 구성 저장", apply, success="저장되었습니다."):
        refresh()


def render(ctx: SessionContext) -> None:
    st.header("포트폴리오")
    code = ctx.admin.get_admin_code()
    sb = admin_client(ctx)
    try:
        portfolios = queries.fetch_all_portfolios(client=sb)
        clients = queries.fetch_clients(client=sb)
        all_stocks = queries.fetch_all_stocks(client=sb)
        by_portfolio, _ = queries.fetch_portfolio_stock_ids([p.id for p in portfolios], client=sb)
    except BackendError as e:
        notify_error(e, "포트폴리오 불러오기")
        return

    with st.expander("➕ 새 포트폴리오"):
        with st.form("new_portfolio"):
            name = st.text_input("이름")
            description = st.text_area("설명")
            owner = _client_picker("소속", clients, None, key="new_portfolio_client")
            if st.form_submit_button("생성"):
                if run_action(
                    "포트폴리오 생성",
                    lambda: mutations.create_portfolio(code, name, description, owner, client=sb),
                    success="생성되었습니다.",
                ):
                    refresh()

    client_names = {c.id: c.name for c in clients}
    for p in portfolios:
        status = "🟢 활성" if p.is_active else "⚪ 비활성"
        with st.expander(f"{status}  {p.name}  ·  {client_names.get(p.client_id or '', '공용')}"):
            c1, _, c3 = st.columns(3)
            if p.is_active:
                if c1.button("비활성화", key=f"deactivate_{p.id}") and run_action(
                    "비활성화", lambda: mutations.deactivate_portfolio(code, p.id, client=sb)
                ):
                    refresh()
            elif c1.button("활성화", key=f"activate_{p.id}") and run_action(
                "활성화", lambda: mutations.activate_portfolio(code, p.id, client=sb)
            ):
                refresh()
            if c3.button("삭제", key=f"delete_{p.id}") and run_action(
                "삭제", lambda: mutations.delete_portfolio(code, p.id, client=sb)
            ):
                refresh()

            with st.form(f"edit_{p.id}"):
                name = st.text_input("이름", p.name)
                description = st.text_area("설명", p.description)
                owner = _client_picker("소속", clients, p.client_id, key=f"client_{p.id}")
                if st.form_submit_button("저장") and run_action(
                    "포트폴리오 수정",
                    lambda: mutations.update_portfolio(code, p.id, name, description, owner, p.return_rate, client=sb),
                    success="저장되었습니다.",
                ):
                    refresh()

            _membership(ctx, p, all_stocks, by_portfolio.get(p.id, []))
