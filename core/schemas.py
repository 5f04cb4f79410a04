"""
core/schemas.py
---------------
Typed domain models shared by the data access layer, the view composition
helpers, the backend API and the Streamlit pages.

Each model that mirrors a Supabase table exposes a `from_row()` constructor
that accepts the raw snake_case row (nullable columns included) and applies
the defaults the views rely on.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# --------------------------------------------------------------------------- #
# Access / identity
# --------------------------------------------------------------------------- #

class AccessType(str, Enum):
    SINGLE = "single"
    SHARED = "shared"
    MASTER = "master"


class ClientInfo(BaseModel):
    """Identity shown in the header once a password resolves."""
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    logo: Optional[str] = None
    brand_color: Optional[str] = Field(default=None, alias="brandColor")


class Identity(BaseModel):
    """Outcome of a successful password resolution."""
    access_type: AccessType
    client_info: Optional[ClientInfo] = None
    client_ids: List[str] = Field(default_factory=list)


class Client(BaseModel):
    id: str
    name: str
    code: str = ""
    password: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    brand_color: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Client":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            code=row.get("code") or "",
            password=row.get("password"),
            description=row.get("description"),
            logo_url=row.get("logo_url"),
            brand_color=row.get("brand_color"),
            is_active=bool(row.get("is_active", True)),
        )


class SharedPassword(BaseModel):
    id: str
    name: str
    password: str = ""
    is_master: bool = False
    client_ids: List[str] = Field(default_factory=list)
    brand_color: Optional[str] = None
    is_active: bool = True

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SharedPassword":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            password=row.get("password") or "",
            is_master=bool(row.get("is_master")),
            client_ids=[str(c) for c in (row.get("client_ids") or [])],
            brand_color=row.get("brand_color"),
            is_active=bool(row.get("is_active", True)),
        )


class AccessCode(BaseModel):
    id: str
    code: str
    is_active: bool
    is_admin: bool
    expires_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AccessCode":
        return cls(
            id=str(row["id"]),
            code=row.get("code") or "",
            is_active=bool(row.get("is_active")),
            is_admin=bool(row.get("is_admin")),
            expires_at=row.get("expires_at"),
        )


# --------------------------------------------------------------------------- #
# Stocks, issues, portfolios
# --------------------------------------------------------------------------- #

class IssueImage(BaseModel):
    url: str
    caption: Optional[str] = None
    source: str = ""
    date: str = ""


class Issue(BaseModel):
    id: str = ""
    stock_id: str = ""
    title: Optional[str] = None
    content: str
    keywords: List[str] = Field(default_factory=list)
    date: str = ""
    is_cms: bool = False
    images: List[IssueImage] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Issue":
        date = row.get("date") or ""
        images = []
        # Older rows store bare URL strings, newer rows store objects
        for img in row.get("images") or []:
            if isinstance(img, str):
                images.append(IssueImage(url=img, date=date))
            else:
                images.append(
                    IssueImage(
                        url=img.get("url", ""),
                        caption=img.get("caption"),
                        source=img.get("source") or "",
                        date=date,
                    )
                )
        return cls(
            id=str(row.get("id") or ""),
            stock_id=str(row.get("stock_id") or ""),
            title=row.get("title"),
            content=row.get("content") or "",
            keywords=row.get("keywords") or [],
            date=date,
            is_cms=bool(row.get("is_cms")),
            images=images,
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )


class InvestmentPoint(BaseModel):
    id: Optional[str] = None
    title: str
    description: str = ""


class BusinessSegment(BaseModel):
    id: Optional[str] = None
    name: str
    name_kr: str = ""
    value: float = 0
    icon_url: Optional[str] = None


class Stock(BaseModel):
    id: str
    ticker: str
    tickers: List[str] = Field(default_factory=list)
    name: str = ""
    name_kr: str = ""
    sector: str = ""
    keywords: List[str] = Field(default_factory=list)
    investment_points: List[InvestmentPoint] = Field(default_factory=list)
    market_cap: str = ""
    market_cap_value: int = 0
    price: float = 0
    change: float = 0
    return_rate: Optional[float] = None
    description: str = ""
    issues: List[Issue] = Field(default_factory=list)
    business_segments: List[BusinessSegment] = Field(default_factory=list)
    per: Optional[float] = None
    pbr: Optional[float] = None
    psr: Optional[float] = None
    ai_summary: str = ""
    ai_summary_keywords: List[str] = Field(default_factory=list)
    last_update: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(
        cls,
        row: Dict[str, Any],
        points: Optional[List[InvestmentPoint]] = None,
        segments: Optional[List[BusinessSegment]] = None,
        issues: Optional[List[Issue]] = None,
    ) -> "Stock":
        ticker = row.get("ticker") or ""
        return cls(
            id=str(row["id"]),
            ticker=ticker,
            tickers=row.get("tickers") or [ticker],
            name=row.get("name") or "",
            name_kr=row.get("name_kr") or "",
            sector=row.get("sector") or "",
            keywords=row.get("keywords") or [],
            investment_points=points or [],
            market_cap=row.get("market_cap") or "",
            market_cap_value=int(row.get("market_cap_value") or 0),
            return_rate=row.get("return_rate"),
            description=row.get("description") or "",
            issues=issues or [],
            business_segments=segments or [],
            per=row.get("per"),
            pbr=row.get("pbr"),
            psr=row.get("psr"),
            ai_summary=row.get("ai_summary") or "",
            ai_summary_keywords=row.get("ai_summary_keywords") or [],
            last_update=row.get("last_update"),
            created_at=row.get("created_at"),
        )


class Portfolio(BaseModel):
    id: str
    name: str
    description: str = ""
    is_active: bool = False
    client_id: Optional[str] = None
    return_rate: float = 0
    brand_color: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Portfolio":
        # The clients(brand_color) join comes back as an object or a one-element list
        joined = row.get("clients")
        if isinstance(joined, list):
            joined = joined[0] if joined else None
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            description=row.get("description") or "",
            is_active=bool(row.get("is_active")),
            client_id=row.get("client_id"),
            return_rate=row.get("return_rate") or 0,
            brand_color=(joined or {}).get("brand_color"),
            created_at=row.get("created_at"),
        )


class PortfolioGroup(BaseModel):
    """A portfolio with its resolved stocks, as rendered by the dashboard."""
    id: str
    name: str
    stocks: List[Stock] = Field(default_factory=list)
    brand_color: Optional[str] = None
    return_rate: float = 0


class FeedItem(BaseModel):
    id: str = ""
    stock_id: str
    stock_name: str
    stock_ticker: str
    is_cms: bool = False
    title: str = ""
    content: str
    keywords: List[str] = Field(default_factory=list)
    date: str
    images: List[IssueImage] = Field(default_factory=list)


# --------------------------------------------------------------------------- #
# Resources, glossary, analytics
# --------------------------------------------------------------------------- #

class Resource(BaseModel):
    id: str
    title: str
    description: str = ""
    file_type: str = "PDF"
    category: str = ""
    date: str = ""
    file_size: str = ""
    file_url: Optional[str] = None
    client_id: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Resource":
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            description=row.get("description") or "",
            file_type=row.get("file_type") or "PDF",
            category=row.get("category") or "",
            date=row.get("date") or "",
            file_size=row.get("file_size") or "",
            file_url=row.get("file_url"),
            client_id=row.get("client_id"),
            created_at=row.get("created_at"),
        )


class GlossaryTerm(BaseModel):
    id: Optional[str] = None
    term: str
    definition: str
    category: Optional[str] = None


class ChartPoint(BaseModel):
    label: str
    count: int = 0


class PortfolioStat(BaseModel):
    id: str
    name: str
    count: int = 0


class RecentView(BaseModel):
    id: str
    portfolio_id: str
    portfolio_name: str = ""
    viewed_at: str


class PortfolioAnalytics(BaseModel):
    """Payload of the `get_portfolio_analytics` RPC."""
    total_views: int = 0
    chart_data: List[ChartPoint] = Field(default_factory=list)
    portfolio_stats: List[PortfolioStat] = Field(default_factory=list)
    recent_views: List[RecentView] = Field(default_factory=list)
