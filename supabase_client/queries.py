# supabase_client/queries.py
"""
Read side of the Data Access Layer.

Every function takes an optional `client` (defaults to the shared anon client)
so tests and the backend can inject their own. Failures surface as
`core.errors.BackendError` from `supabase_client.helpers.execute`.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

from core.schemas import (
    AccessCode,
    AccessType,
    BusinessSegment,
    Client,
    GlossaryTerm,
    InvestmentPoint,
    Issue,
    Portfolio,
    PortfolioAnalytics,
    Resource,
    SharedPassword,
    Stock,
)
from supabase_client.config import get_supabase_client
from supabase_client.helpers import call_rpc, execute


def _sb(client: Any) -> Any:
    return client if client is not None else get_supabase_client()


def _first(rows: Optional[List[Dict[str, Any]]]) -> Optional[Dict[str, Any]]:
    return rows[0] if rows else None


# --------------------------------------------------------------------------- #
# Credentials
# --------------------------------------------------------------------------- #

def find_active_client_by_password(password: str, client: Any = None) -> Optional[Dict[str, Any]]:
    """Return `{id, name, logo_url, brand_color}` of the active client with this password."""
    res = execute(
        _sb(client)
        .table("clients")
        .select("id, name, logo_url, brand_color")
        .eq("password", password)
        .eq("is_active", True)
        .limit(1),
        "client password lookup",
    )
    return _first(res.data)


def find_active_shared_password(password: str, client: Any = None) -> Optional[Dict[str, Any]]:
    """Return `{id, name, is_master, client_ids, brand_color}` of the matching shared password."""
    res = execute(
        _sb(client)
        .table("shared_passwords")
        .select("id, name, is_master, client_ids, brand_color")
        .eq("password", password)
        .eq("is_active", True)
        .limit(1),
        "shared password lookup",
    )
    return _first(res.data)


def get_active_code_version(client: Any = None) -> Optional[str]:
    """Server-side marker that changes when the active credential is rotated."""
    data = call_rpc(_sb(client), "get_active_code_version")
    return None if data is None else str(data)


def verify_admin_code(code: str, client: Any = None) -> bool:
    return call_rpc(_sb(client), "verify_admin_code", {"input_code": code}) is True


def fetch_clients(client: Any = None) -> List[Client]:
    res = execute(_sb(client).table("clients").select("*").order("name"), "fetch clients")
    return [Client.from_row(r) for r in res.data or []]


def fetch_shared_passwords(client: Any = None) -> List[SharedPassword]:
    res = execute(
        _sb(client).table("shared_passwords").select("*").order("name"),
        "fetch shared passwords",
    )
    return [SharedPassword.from_row(r) for r in res.data or []]


def fetch_access_codes(admin_only: bool = False, client: Any = None) -> List[AccessCode]:
    codes = [AccessCode.from_row(r) for r in call_rpc(_sb(client), "get_all_access_codes") or []]
    if admin_only:
        codes = [c for c in codes if c.is_admin]
    return codes


# --------------------------------------------------------------------------- #
# Portfolios
# --------------------------------------------------------------------------- #

def fetch_portfolios(
    access_type: Optional[AccessType],
    client_id: Optional[str] = None,
    client_ids: Optional[List[str]] = None,
    client: Any = None,
) -> List[Portfolio]:
    """
    Active portfolios visible to the current identity.

    - single : only the client's own portfolios
    - shared : portfolios of any client in `client_ids`
    - master : everything active
    """
    if access_type is None:
        return []
    # an identity without a scope sees nothing
    if access_type == AccessType.SINGLE and not client_id:
        return []
    if access_type == AccessType.SHARED and not client_ids:
        return []

    query = (
        _sb(client)
        .table("portfolios")
        .select("id, name, return_rate, client_id, clients(brand_color)")
        .eq("is_active", True)
    )
    if access_type == AccessType.SINGLE:
        query = query.eq("client_id", client_id)
    elif access_type == AccessType.SHARED:
        query = query.in_("client_id", list(client_ids))

    res = execute(query, "fetch portfolios")
    return [Portfolio.from_row(r) for r in res.data or []]


def fetch_all_portfolios(client: Any = None) -> List[Portfolio]:
    """Every portfolio, newest first (admin view)."""
    res = execute(
        _sb(client).table("portfolios").select("*").order("created_at", desc=True),
        "fetch all portfolios",
    )
    return [Portfolio.from_row(r) for r in res.data or []]


def fetch_portfolio_stock_ids(
    portfolio_ids: List[str],
    client: Any = None,
) -> Tuple[Dict[str, List[str]], List[str]]:
    """
    Returns
    -------
    (stock_ids_by_portfolio, all_stock_ids)
        `all_stock_ids` keeps first-seen order without duplicates.
    """
    if not portfolio_ids:
        return {}, []

    res = execute(
        _sb(client)
        .table("portfolio_stocks")
        .select("portfolio_id, stock_id")
        .in_("portfolio_id", list(portfolio_ids)),
        "fetch portfolio stocks",
    )
    by_portfolio: Dict[str, List[str]] = defaultdict(list)
    all_ids: List[str] = []
    for row in res.data or []:
        pid, sid = str(row["portfolio_id"]), str(row["stock_id"])
        by_portfolio[pid].append(sid)
        if sid not in all_ids:
            all_ids.append(sid)
    return dict(by_portfolio), all_ids


def fetch_portfolio_analytics(
    period: str = "daily",
    portfolio_id: Optional[str] = None,
    client: Any = None,
) -> PortfolioAnalytics:
    data = call_rpc(
        _sb(client),
        "get_portfolio_analytics",
        {"p_period": period, "p_portfolio_id": portfolio_id},
    )
    return PortfolioAnalytics.model_validate(data or {})


# --------------------------------------------------------------------------- #
# Stocks & issues
# --------------------------------------------------------------------------- #

def fetch_stocks_with_relations(stock_ids: List[str], client: Any = None) -> List[Stock]:
    """Load stocks plus investment points, business segments and issues in one pass."""
    if not stock_ids:
        return []

    sb = _sb(client)
    ids = list(stock_ids)
    stocks_res = execute(sb.table("stocks").select("*").in_("id", ids), "fetch stocks")
    points_res = execute(
        sb.table("investment_points").select("*").in_("stock_id", ids).order("sort_order"),
        "fetch investment points",
    )
    segments_res = execute(
        sb.table("business_segments").select("*").in_("stock_id", ids).order("sort_order"),
        "fetch business segments",
    )
    issues_res = execute(
        sb.table("issues").select("*").in_("stock_id", ids).order("date", desc=True),
        "fetch issues",
    )

    points: Dict[str, List[InvestmentPoint]] = defaultdict(list)
    for p in points_res.data or []:
        points[str(p["stock_id"])].append(
            InvestmentPoint(
                id=str(p["id"]) if p.get("id") is not None else None,
                title=p.get("title") or "",
                description=p.get("description") or "",
            )
        )

    segments: Dict[str, List[BusinessSegment]] = defaultdict(list)
    for s in segments_res.data or []:
        segments[str(s["stock_id"])].append(
            BusinessSegment(
                id=str(s["id"]) if s.get("id") is not None else None,
                name=s.get("name") or "",
                name_kr=s.get("name_kr") or "",
                value=s.get("value") or 0,
                icon_url=s.get("icon_url"),
            )
        )

    issues: Dict[str, List[Issue]] = defaultdict(list)
    for row in issues_res.data or []:
        issues[str(row["stock_id"])].append(Issue.from_row(row))

    return [
        Stock.from_row(row, points.get(str(row["id"])), segments.get(str(row["id"])), issues.get(str(row["id"])))
        for row in stocks_res.data or []
    ]


def fetch_all_stocks(client: Any = None) -> List[Stock]:
    """Every stock without relations, ordered by Korean name (admin lists)."""
    res = execute(_sb(client).table("stocks").select("*").order("name_kr"), "fetch all stocks")
    return [Stock.from_row(r) for r in res.data or []]


# --------------------------------------------------------------------------- #
# Glossary & resources
# --------------------------------------------------------------------------- #

def fetch_glossary(client: Any = None) -> Dict[str, str]:
    """Glossary as a term → definition map."""
    res = execute(_sb(client).table("glossary").select("*"), "fetch glossary")
    return {row["term"]: row["definition"] for row in res.data or []}


def fetch_glossary_list(client: Any = None) -> List[GlossaryTerm]:
    res = execute(_sb(client).table("glossary").select("*").order("term"), "fetch glossary list")
    return [
        GlossaryTerm(
            id=str(r["id"]) if r.get("id") is not None else None,
            term=r["term"],
            definition=r.get("definition") or "",
            category=r.get("category"),
        )
        for r in res.data or []
    ]


def _scope_resources(query: Any, client_id: Optional[str]) -> Any:
    # Client-specific resources plus public ones; anonymous sees public only
    if client_id:
        return query.or_(f"client_id.eq.{client_id},client_id.is.null")
    return query.is_("client_id", "null")


def fetch_resources(client_id: Optional[str] = None, client: Any = None) -> List[Resource]:
    query = _sb(client).table("resources").select("*").order("date", desc=True)
    res = execute(_scope_resources(query, client_id), "fetch resources")
    return [Resource.from_row(r) for r in res.data or []]


def fetch_all_resources(client: Any = None) -> List[Resource]:
    """Every resource regardless of client scope (admin view)."""
    res = execute(_sb(client).table("resources").select("*").order("date", desc=True), "fetch all resources")
    return [Resource.from_row(r) for r in res.data or []]


def fetch_latest_resource_created_at(client_id: Optional[str] = None, client: Any = None) -> Optional[str]:
    query = _sb(client).table("resources").select("created_at").order("created_at", desc=True).limit(1)
    res = execute(_scope_resources(query, client_id), "fetch latest resource")
    row = _first(res.data)
    return row.get("created_at") if row else None
