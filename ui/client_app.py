"""
ui/client_app.py
----------------
Client dashboard (Streamlit).

    streamlit run ui/client_app.py

- Access gate: password -> single / shared / master identity.
- Session bar with 1 s countdown, extend and logout.
- Tabs: PORTFOLIO (grouped stocks, search, sort, detail), ISSUES (timeline),
  RESOURCES (downloads, with a "new" badge).
"""

import os
import sys
from typing import Dict, List, Optional, Tuple

import pandas as pd
import streamlit as st

# Ensure project root is on sys.path when running via `streamlit run ui/client_app.py`
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.append(ROOT_DIR)

from access.context import SessionContext
from access.preferences import MainTab, SortDirection, ViewMode
from access.resolver import current_code_version, resolve_password
from analytics.portfolio_view import (
    build_feed_items,
    build_portfolio_groups,
    filter_stocks,
    has_new_resources,
    sort_stocks,
)
from core.errors import AuthenticationError, BackendError, ValidationError
from core.formatting import format_market_cap_short, parse_market_cap
from core.metadata import COPYRIGHT
from core.schemas import AccessType, Portfolio, PortfolioGroup, Stock
from core.sector import simplify_sector
from core.ui_helpers import get_context, notify_error, show_flash
from supabase_client import mutations, queries
from ui.components.session_bar import render_client_session_bar

st.set_page_config(page_title="CMS Portfolio", layout="wide", page_icon="📈")

SORT_LABELS = {
    "name": "종목명",
    "sector": "섹터",
    "keywords": "키워드",
    "market_cap_value": "시가총액",
    "return_rate": "수익률",
}


# ---------------------------------------------------------------------------
# Data loading (cached per identity)
# ---------------------------------------------------------------------------

@st.cache_data(ttl=60, show_spinner="데이터를 불러오는 중...")
def load_dashboard(
    access_type: str,
    client_id: Optional[str],
    client_ids: Tuple[str, ...],
) -> Tuple[List[Portfolio], Dict[str, List[str]], List[Stock]]:
    portfolios = queries.fetch_portfolios(AccessType(access_type), client_id, list(client_ids))
    by_portfolio, all_ids = queries.fetch_portfolio_stock_ids([p.id for p in portfolios])
    stocks = queries.fetch_stocks_with_relations(all_ids)
    return portfolios, by_portfolio, stocks


@st.cache_data(ttl=300)
def load_glossary() -> Dict[str, str]:
    return queries.fetch_glossary()


@st.cache_data(ttl=60)
def load_latest_resource(client_id: Optional[str]) -> Optional[str]:
    return queries.fetch_latest_resource_created_at(client_id)


# ---------------------------------------------------------------------------
# Access gate
# ---------------------------------------------------------------------------

def render_access_gate(ctx: SessionContext) -> None:
    st.title("🔒 CMS Portfolio")
    st.caption("발급받은 비밀번호를 입력해주세요.")
    with st.form("access_gate"):
        password = st.text_input("비밀번호", type="password")
        submitted = st.form_submit_button("입장")

    if not submitted:
        return
    try:
        identity = resolve_password(password)
    except (ValidationError, AuthenticationError) as e:
        st.error(str(e))
        return

    ctx.client.login(identity, current_code_version())
    ctx.ui.reset()
    ctx.save()
    st.rerun()


# ---------------------------------------------------------------------------
# Portfolio tab
# ---------------------------------------------------------------------------

def _stocks_frame(stocks: List[Stock]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "종목명": s.name_kr or s.name,
                "티커": s.ticker,
                "섹터": simplify_sector(s.sector, short=True),
                "키워드": ", ".join(s.keywords[:3]),
                "시가총액": format_market_cap_short(s.market_cap),
                "수익률(%)": s.return_rate,
            }
            for s in stocks
        ]
    )


def render_sort_controls(ctx: SessionContext) -> None:
    cols = st.columns(len(SORT_LABELS))
    for col, (key, label) in zip(cols, SORT_LABELS.items()):
        arrow = ""
        if ctx.ui.sort_key == key:
            arrow = " ▲" if ctx.ui.sort_direction == SortDirection.ASC else " ▼"
        if col.button(label + arrow, key=f"sort_{key}"):
            ctx.ui.set_sort(key)
            st.rerun()


def render_portfolio_group(ctx: SessionContext, group: PortfolioGroup) -> None:
    expanded = group.id in ctx.ui.expanded_portfolios
    header = f"{'▾' if expanded else '▸'} {group.name}  ·  {len(group.stocks)}종목  ·  {group.return_rate:+.2f}%"
    if st.button(header, key=f"toggle_{group.id}", use_container_width=True):
        if ctx.ui.toggle_portfolio(group.id):
            mutations.record_portfolio_view(group.id, ctx.client.access_type, ctx.client.scope_client_id)
        st.rerun()
    if not expanded:
        return

    query = st.text_input("종목 검색", key=f"search_{group.id}", placeholder="종목명, 티커, 섹터, 키워드")
    visible = sort_stocks(
        filter_stocks(group.stocks, query),
        ctx.ui.sort_key,
        ctx.ui.sort_direction.value,
    )
    if not visible:
        st.info("검색 결과가 없습니다.")
        return

    st.dataframe(_stocks_frame(visible), hide_index=True, use_container_width=True)
    options = {f"{s.name_kr or s.name} ({s.ticker})": s.id for s in visible}
    choice = st.selectbox("상세 보기", ["-"] + list(options), key=f"detail_{group.id}")
    if choice != "-":
        ctx.ui.select_stock(options[choice])
        st.rerun()


def render_stock_detail(ctx: SessionContext, stock: Stock, glossary: Dict[str, str]) -> None:
    if st.button("← 목록으로"):
        ctx.ui.select_stock(None)
        st.rerun()

    st.header(f"{stock.name_kr} {stock.name}")
    st.caption(f"{', '.join(stock.tickers)} · {simplify_sector(stock.sector)}")

    cap = parse_market_cap(stock.market_cap)
    c0, c1, c2, c3, c4 = st.columns(5)
    c0.metric("시가총액", f"{cap['jo']}조 {int(cap['ok']):,}억" if cap else stock.market_cap or "-")
    c1.metric("수익률", f"{stock.return_rate:+.2f}%" if stock.return_rate is not None else "-")
    c2.metric("PER", stock.per if stock.per is not None else "-")
    c3.metric("PBR", stock.pbr if stock.pbr is not None else "-")
    c4.metric("PSR", stock.psr if stock.psr is not None else "-")

    if stock.ai_summary:
        st.info(stock.ai_summary)
        st.caption(" ".join(f"#{k}" for k in stock.ai_summary_keywords))
    if stock.description:
        st.write(stock.description)

    if stock.investment_points:
        st.subheader("투자 포인트")
        for point in stock.investment_points:
            st.markdown(f"**{point.title}**  \n{point.description}")

    if stock.business_segments:
        st.subheader("사업 부문")
        segments = sorted(stock.business_segments, key=lambda s: s.value, reverse=True)
        st.dataframe(
            pd.DataFrame([{"부문": s.name_kr or s.name, "비중(%)": s.value} for s in segments]),
            hide_index=True,
        )

    st.subheader("타임라인")
    for issue in sorted(stock.issues, key=lambda i: i.date, reverse=True):
        badge = " `CMS`" if issue.is_cms else ""
        st.markdown(f"**[{issue.date}] {issue.title or ''}**{badge}")
        st.write(issue.content)
        for img in issue.images:
            st.image(img.url, caption=img.caption)

    terms = {t: d for t, d in glossary.items() if t in stock.description}
    if terms:
        with st.expander("용어 설명"):
            for term, definition in terms.items():
                st.markdown(f"**{term}**: {definition}")


def render_portfolio_tab(ctx: SessionContext, groups: List[PortfolioGroup]) -> None:
    if not groups:
        st.info("표시할 포트폴리오가 없습니다.")
        return
    render_sort_controls(ctx)
    for group in groups:
        render_portfolio_group(ctx, group)


# ---------------------------------------------------------------------------
# Issues & resources tabs
# ---------------------------------------------------------------------------

def render_issues_tab(stocks: List[Stock]) -> None:
    items = build_feed_items(stocks)
    if not items:
        st.info("등록된 이슈가 없습니다.")
        return
    for item in items:
        badge = " `CMS`" if item.is_cms else ""
        st.markdown(f"**{item.stock_name}** `{item.stock_ticker}` · {item.date}{badge}")
        if item.title:
            st.markdown(f"**{item.title}**")
        st.write(item.content)
        if item.keywords:
            st.caption(" ".join(f"#{k}" for k in item.keywords))
        st.divider()


def render_resources_tab(ctx: SessionContext) -> None:
    try:
        resources = queries.fetch_resources(ctx.client.scope_client_id)
    except BackendError as e:
        notify_error(e, "자료 불러오기")
        return
    if not resources:
        st.info("등록된 자료가 없습니다.")
        return
    for r in resources:
        cols = st.columns([6, 2, 2])
        cols[0].markdown(f"**{r.title}**  \n{r.description}")
        cols[1].caption(f"{r.category} · {r.date} · {r.file_size}")
        if r.file_url:
            cols[2].link_button(r.file_type, r.file_url)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> None:
    ctx = get_context()
    if not ctx.client.is_session_valid():
        if ctx.client.is_authenticated:
            ctx.logout_client()
        render_access_gate(ctx)
        return

    render_client_session_bar(ctx)
    show_flash()

    try:
        portfolios, by_portfolio, stocks = load_dashboard(
            ctx.client.access_type.value,
            ctx.client.client_info.id if ctx.client.client_info else None,
            tuple(ctx.client.client_ids),
        )
        latest_resource = load_latest_resource(ctx.client.scope_client_id)
    except BackendError as e:
        notify_error(e, "데이터 불러오기")
        st.stop()

    fallback_color = ctx.client.client_info.brand_color if ctx.client.client_info else None
    groups = build_portfolio_groups(portfolios, stocks, by_portfolio, fallback_color)

    if ctx.ui.view_mode == ViewMode.DETAIL and ctx.ui.selected_stock_id:
        selected = next((s for s in stocks if s.id == ctx.ui.selected_stock_id), None)
        if selected is not None:
            render_stock_detail(ctx, selected, load_glossary())
            ctx.save()
            return
        ctx.ui.select_stock(None)

    new_badge = " •" if has_new_resources(latest_resource, ctx.ui.last_seen_resources_at) else ""
    labels = {MainTab.PORTFOLIO: "PORTFOLIO", MainTab.ISSUES: "ISSUES", MainTab.RESOURCES: f"RESOURCES{new_badge}"}
    tabs = list(labels)
    chosen = st.radio(
        "tab",
        tabs,
        index=tabs.index(ctx.ui.active_tab),
        format_func=labels.get,
        horizontal=True,
        label_visibility="collapsed",
    )
    if chosen != ctx.ui.active_tab:
        ctx.ui.set_active_tab(chosen)
        if chosen == MainTab.PORTFOLIO:
            ctx.ui.reset_expanded_portfolios()
        ctx.save()
        st.rerun()

    if ctx.ui.active_tab == MainTab.PORTFOLIO:
        render_portfolio_tab(ctx, groups)
    elif ctx.ui.active_tab == MainTab.ISSUES:
        render_issues_tab(stocks)
    else:
        render_resources_tab(ctx)

    ctx.save()
    st.markdown("---")
    st.caption(COPYRIGHT)


main()
