# importer/stock_parser.py
"""
Spreadsheet row → stock metrics payload for the bulk stock update.

Spreadsheet columns are renamed to table columns; blank text becomes None,
while numeric columns keep zeros.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional

from importer.issue_parser import cell_text, is_blank

NO_VALID_STOCK_ROWS_REASON = "유효한 데이터가 없습니다. ticker 컬럼을 확인하세요."

# spreadsheet column -> table column
TEXT_COLUMNS = {
    "name": "name",
    "name_kr": "name_kr",
    "sector": "sector",
    "marketCap": "market_cap",
    "description": "description",
}
NUMERIC_COLUMNS = {
    "totalReturn": "return_rate",
    "PER": "per",
    "PBR": "pbr",
    "PSR": "psr",
}


@dataclass
class ParsedStockRow:
    ticker: str
    name: Optional[str] = None
    name_kr: Optional[str] = None
    sector: Optional[str] = None
    market_cap: Optional[str] = None
    return_rate: Optional[float] = None
    per: Optional[float] = None
    pbr: Optional[float] = None
    psr: Optional[float] = None
    description: Optional[str] = None
    keywords: Optional[List[str]] = None

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


def get_id_from_ticker(ticker: Optional[str]) -> str:
    """'002050.SZ' -> '002050'; tickers without an exchange suffix pass through."""
    if not ticker:
        return ""
    dot = ticker.find(".")
    return ticker[:dot] if dot > 0 else ticker


def _text_or_none(value: Any) -> Optional[str]:
    return cell_text(value) or None


def _number_or_none(value: Any) -> Optional[float]:
    return None if is_blank(value) else value


def parse_stock_rows(rows: Iterable[Dict[str, Any]]) -> List[ParsedStockRow]:
    parsed: List[ParsedStockRow] = []
    for row in rows:
        ticker = cell_text(row.get("ticker"))
        if not ticker:
            continue
        fields: Dict[str, Any] = {col: _text_or_none(row.get(src)) for src, col in TEXT_COLUMNS.items()}
        fields.update({col: _number_or_none(row.get(src)) for src, col in NUMERIC_COLUMNS.items()})
        raw_keywords = cell_text(row.get("keywords"))
        fields["keywords"] = [k.strip() for k in raw_keywords.split(",")] if raw_keywords else None
        parsed.append(ParsedStockRow(ticker=ticker, **fields))
    return parsed
