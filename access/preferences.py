# access/preferences.py
"""
Dashboard UI preferences.

Only `isDarkMode` and `lastSeenResourcesAt` survive a reload; everything else
resets with the page.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional


class ViewMode(str, Enum):
    DASHBOARD = "DASHBOARD"
    DETAIL = "DETAIL"


class MainTab(str, Enum):
    PORTFOLIO = "PORTFOLIO"
    ISSUES = "ISSUES"
    RESOURCES = "RESOURCES"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


SORT_KEYS = ("name", "sector", "keywords", "market_cap_value", "return_rate")
DESC_BY_DEFAULT = ("market_cap_value", "return_rate")


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class UIPreferences:
    def __init__(self, now_iso: Optional[Callable[[], str]] = None):
        self._now_iso = now_iso or _utc_now_iso
        # persisted
        self.is_dark_mode = False
        self.last_seen_resources_at: Optional[str] = None
        # transient
        self.view_mode = ViewMode.DASHBOARD
        self.active_tab = MainTab.PORTFOLIO
        self.sort_key = "name"
        self.sort_direction = SortDirection.ASC
        self.expanded_portfolios: List[str] = []
        self.selected_stock_id: Optional[str] = None

    def set_view_mode(self, mode: ViewMode) -> None:
        self.view_mode = ViewMode(mode)

    def set_active_tab(self, tab: MainTab) -> None:
        self.active_tab = MainTab(tab)
        if self.active_tab == MainTab.RESOURCES:
            self.last_seen_resources_at = self._now_iso()

    def toggle_dark_mode(self) -> None:
        self.is_dark_mode = not self.is_dark_mode

    def set_sort(self, key: str) -> None:
        """Same key flips the direction; a new key starts at its default direction."""
        if key not in SORT_KEYS:
            raise ValueError(f"Unknown sort key: {key}")
        if key == self.sort_key:
            self.sort_direction = (
                SortDirection.DESC if self.sort_direction == SortDirection.ASC else SortDirection.ASC
            )
        else:
            self.sort_key = key
            self.sort_direction = SortDirection.DESC if key in DESC_BY_DEFAULT else SortDirection.ASC

    def toggle_portfolio(self, portfolio_id: str) -> bool:
        """Returns True when the portfolio was just expanded."""
        if portfolio_id in self.expanded_portfolios:
            self.expanded_portfolios = [p for p in self.expanded_portfolios if p != portfolio_id]
            return False
        self.expanded_portfolios = self.expanded_portfolios + [portfolio_id]
        return True

    def reset_expanded_portfolios(self) -> None:
        self.expanded_portfolios = []

    def select_stock(self, stock_id: Optional[str]) -> None:
        self.selected_stock_id = stock_id
        self.view_mode = ViewMode.DETAIL if stock_id else ViewMode.DASHBOARD

    def reset(self) -> None:
        self.view_mode = ViewMode.DASHBOARD
        self.active_tab = MainTab.PORTFOLIO
        self.expanded_portfolios = []
        self.selected_stock_id = None

    def to_dict(self) -> Dict[str, Any]:
        return {"isDarkMode": self.is_dark_mode, "lastSeenResourcesAt": self.last_seen_resources_at}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], now_iso: Optional[Callable[[], str]] = None) -> "UIPreferences":
        prefs = cls(now_iso)
        if data:
            prefs.is_dark_mode = bool(data.get("isDarkMode"))
            prefs.last_seen_resources_at = data.get("lastSeenResourcesAt")
        return prefs
