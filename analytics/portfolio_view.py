"""
analytics/portfolio_view.py
---------------------------

Pure view composition for the client dashboard and the admin issue feed.

- build_portfolio_groups : portfolios + loaded stocks -> rendered groups
- filter_stocks          : per-portfolio search box
- filter_by_sector       : admin stock list category filter
- sort_stocks            : column sort driven by UIPreferences
- build_feed_items       : issue timeline across stocks
- has_new_resources      : "new" badge on the RESOURCES tab

No network access here; callers pass in what the data access layer returned.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Optional

from core.schemas import FeedItem, Portfolio, PortfolioGroup, Stock
from core.sector import simplify_sector

logger = logging.getLogger(__name__)


def build_portfolio_groups(
    portfolios: Iterable[Portfolio],
    stocks: Iterable[Stock],
    stock_ids_by_portfolio: Dict[str, List[str]],
    fallback_color: Optional[str] = None,
) -> List[PortfolioGroup]:
    """
    Attach stocks to their portfolios.

    A group's return rate is the plain sum of its stocks' return rates
    (missing rates count as 0). Brand color falls back to the viewer's own.
    """
    stock_list = list(stocks)
    groups: List[PortfolioGroup] = []
    for p in portfolios:
        member_ids = set(stock_ids_by_portfolio.get(p.id, []))
        members = [s for s in stock_list if s.id in member_ids]
        groups.append(
            PortfolioGroup(
                id=p.id,
                name=p.name,
                stocks=members,
                brand_color=p.brand_color or fallback_color,
                return_rate=sum(s.return_rate or 0 for s in members),
            )
        )
    return groups


def filter_stocks(stocks: List[Stock], query: Optional[str]) -> List[Stock]:
    q = (query or "").strip().lower()
    if not q:
        return stocks
    return [
        s for s in stocks
        if q in s.name_kr.lower()
        or q in s.name.lower()
        or q in s.ticker.lower()
        or q in s.sector.lower()
        or any(q in k.lower() for k in s.keywords)
    ]


def filter_by_sector(stocks: List[Stock], label: Optional[str]) -> List[Stock]:
    """Keep stocks whose simplified sector is `label`; no label keeps all."""
    if not label:
        return stocks
    return [s for s in stocks if simplify_sector(s.sector) == label]


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

def _sort_value(stock: Stock, key: str) -> Any:
    if key == "keywords":
        return stock.keywords[0] if stock.keywords else ""
    value = getattr(stock, key, None)
    return 0 if value is None else value


def sort_stocks(stocks: List[Stock], key: str = "name", direction: str = "ASC") -> List[Stock]:
    """
    Stable sort for the dashboard table.

    `sector` compares simplified sector labels, ties broken by market cap
    (largest first, whatever the direction).
    """
    sign = 1 if str(getattr(direction, "value", direction)) == "ASC" else -1

    def compare(a: Stock, b: Stock) -> int:
        if key == "sector":
            sa, sb = simplify_sector(a.sector), simplify_sector(b.sector)
            if sa != sb:
                return -sign if sa < sb else sign
            return b.market_cap_value - a.market_cap_value
        va, vb = _sort_value(a, key), _sort_value(b, key)
        if va < vb:
            return -sign
        if va > vb:
            return sign
        return 0

    return sorted(stocks, key=cmp_to_key(compare))


# ---------------------------------------------------------------------------
# Feed & badges
# ---------------------------------------------------------------------------

def build_feed_items(stocks: Iterable[Stock]) -> List[FeedItem]:
    """Every issue of every stock, newest date first."""
    items = [
        FeedItem(
            id=issue.id,
            stock_id=stock.id,
            stock_name=stock.name_kr,
            stock_ticker=stock.ticker,
            is_cms=issue.is_cms,
            title=issue.title or "",
            content=issue.content,
            keywords=issue.keywords,
            date=issue.date,
            images=issue.images,
        )
        for stock in stocks
        for issue in stock.issues
    ]
    items.sort(key=lambda item: item.date, reverse=True)
    return items


def _parse_ts(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def has_new_resources(latest_created_at: Optional[str], last_seen_at: Optional[str]) -> bool:
    """True when a resource was created after the viewer last opened the tab."""
    if not latest_created_at:
        return False
    if not last_seen_at:
        return True
    latest, seen = _parse_ts(latest_created_at), _parse_ts(last_seen_at)
    if latest is None or seen is None or (latest.tzinfo is None) != (seen.tzinfo is None):
        logger.debug("Falling back to text comparison for %r vs %r", latest_created_at, last_seen_at)
        return latest_created_at > last_seen_at
    return latest > seen
