"""
analytics/view_insights.py
--------------------------

Pure helper for summarizing portfolio view analytics.

This module must remain network-agnostic and pure:
- Input: PortfolioAnalytics (payload of the get_portfolio_analytics RPC)
- Output: dict[str, Any] (JSON-serializable insights)

Used by backend.routes.admin:/admin/analytics and the admin analytics page.
"""

from __future__ import annotations
from typing import Any, Dict, List
import numpy as np

from core.schemas import PortfolioAnalytics


def compute_view_insights(analytics: PortfolioAnalytics) -> Dict[str, Any]:
    """
    Compute summary statistics from a view analytics payload.

    Returns
    -------
    dict : JSON-serializable summary with keys:
        - total_views
        - bucket_stats   (count / mean / max of views per chart bucket)
        - peak_bucket    (label of the busiest bucket, or None)
        - portfolio_share (portfolio name -> share of views, 0..1)
        - top_portfolio
    """
    if analytics.total_views == 0 and not analytics.chart_data:
        return {
            "total_views": 0,
            "bucket_stats": {},
            "peak_bucket": None,
            "portfolio_share": {},
            "top_portfolio": None,
        }

    counts = np.array([p.count for p in analytics.chart_data], dtype=float)
    bucket_stats: Dict[str, float] = {}
    peak_bucket = None
    if counts.size:
        bucket_stats = {
            "count": int(counts.size),
            "mean": float(np.mean(counts)),
            "max": float(np.max(counts)),
        }
        peak_bucket = analytics.chart_data[int(np.argmax(counts))].label

    names: List[str] = [s.name for s in analytics.portfolio_stats]
    views = np.array([s.count for s in analytics.portfolio_stats], dtype=float)
    portfolio_share: Dict[str, float] = {}
    top_portfolio = None
    if views.size and views.sum() > 0:
        shares = views / views.sum()
        portfolio_share = {name: round(float(share), 4) for name, share in zip(names, shares)}
        top_portfolio = names[int(np.argmax(views))]

    return {
        "total_views": analytics.total_views,
        "bucket_stats": bucket_stats,
        "peak_bucket": peak_bucket,
        "portfolio_share": portfolio_share,
        "top_portfolio": top_portfolio,
    }
