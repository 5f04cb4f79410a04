# ui/views/analytics.py
"""Portfolio view analytics (served by the backend's /admin/analytics)."""

from __future__ import annotations

import streamlit as st

from access.context import SessionContext
from core.errors import BackendError, CMSError
from core.schemas import PortfolioAnalytics
from core.ui_helpers import fetch_backend, notify_error
from supabase_client import queries
from ui.components.visualizer import (
    PERIOD_LABELS,
    portfolio_share_figure,
    recent_views_frame,
    views_over_time_figure,
)
from ui.views.common import admin_client


def render(ctx: SessionContext) -> None:
    st.header("통계")
    try:
        portfolios = queries.fetch_all_portfolios(client=admin_client(ctx))
    except BackendError as e:
        notify_error(e, "포트폴리오 불러오기")
        return

    c1, c2 = st.columns(2)
    period = c1.radio("기간", list(PERIOD_LABELS), format_func=PERIOD_LABELS.get, horizontal=True)
    names = {p.id: p.name for p in portfolios}
    portfolio_id = c2.selectbox("포트폴리오", [None] + list(names), format_func=lambda pid: names.get(pid, "전체"))

    params = {"period": period}
    if portfolio_id:
        params["portfolio_id"] = portfolio_id
    try:
        body = fetch_backend("/admin/analytics", params=params, admin_code=ctx.admin.get_admin_code())
    except CMSError as e:
        notify_error(e, "통계 불러오기")
        return

    data = PortfolioAnalytics.model_validate(body["analytics"])
    insights = body.get("insights", {})

    m1, m2, m3 = st.columns(3)
    m1.metric("총 조회수", data.total_views)
    m2.metric("최다 조회 구간", insights.get("peak_bucket") or "-")
    m3.metric("최다 조회 포트폴리오", insights.get("top_portfolio") or "-")

    st.plotly_chart(views_over_time_figure(data, period), use_container_width=True)
    if data.portfolio_stats:
        st.plotly_chart(portfolio_share_figure(data), use_container_width=True)
    st.subheader("최근 조회")
    st.dataframe(recent_views_frame(data), hide_index=True, use_container_width=True)
