"""
ui/components/visualizer.py
---------------------------
Plotly figures for the admin analytics page.

Pure functions, no Streamlit imports (the page calls these). Input is the
`PortfolioAnalytics` payload already fetched by the caller.
"""

from __future__ import annotations

from typing import Dict

import pandas as pd
import plotly.express as px

from core.schemas import PortfolioAnalytics

PERIOD_LABELS = {"daily": "일별", "weekly": "주별", "monthly": "월별"}


def views_over_time_figure(analytics: PortfolioAnalytics, period: str = "daily"):
    """Bar chart of view counts per time bucket."""
    df = pd.DataFrame([p.model_dump() for p in analytics.chart_data], columns=["label", "count"])
    fig = px.bar(
        df,
        x="label",
        y="count",
        title=f"{PERIOD_LABELS.get(period, period)} 조회수",
        labels={"label": "", "count": "조회수"},
    )
    fig.update_layout(margin=dict(l=10, r=10, t=40, b=10), height=320)
    return fig


def portfolio_share_figure(analytics: PortfolioAnalytics):
    """Horizontal bar of views per portfolio, busiest on top."""
    df = pd.DataFrame([s.model_dump() for s in analytics.portfolio_stats], columns=["id", "name", "count"])
    df = df.sort_values("count", ascending=True)
    fig = px.bar(df, x="count", y="name", orientation="h", title="포트폴리오별 조회수",
                 labels={"count": "조회수", "name": ""})
    fig.update_layout(margin=dict(l=10, r=10, t=40, b=10), height=max(240, 40 * len(df)))
    return fig


def recent_views_frame(analytics: PortfolioAnalytics) -> pd.DataFrame:
    rows: list[Dict[str, str]] = [
        {"포트폴리오": v.portfolio_name, "조회 시각": v.viewed_at} for v in analytics.recent_views
    ]
    return pd.DataFrame(rows, columns=["포트폴리오", "조회 시각"])
