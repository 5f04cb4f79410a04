# importer/issue_parser.py
"""
Spreadsheet row → issue payload parsing for the bulk issue import.

Cells arrive loosely typed (text, numbers, Excel serial dates, datetimes,
booleans or blanks). Rows missing ticker, date, title or content are dropped
without error; everything else is normalised into `ParsedIssueRow`.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List

import pandas as pd

EXCEL_EPOCH = datetime(1899, 12, 30)
MS_PER_DAY = 24 * 60 * 60 * 1000

REQUIRED_FIELDS = ("ticker", "date", "title", "content")
NO_VALID_ROWS_REASON = "유효한 데이터가 없습니다. ticker, date, title, content는 필수입니다."


@dataclass
class ParsedIssueRow:
    ticker: str
    date: str
    title: str
    content: str
    source: str = ""
    is_cms: bool = False
    keywords: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Cell helpers
# ---------------------------------------------------------------------------

def is_blank(value: Any) -> bool:
    """None, NaN and NaT (what pandas leaves in empty cells) count as absent."""
    if value is None or value is pd.NaT:
        return True
    return isinstance(value, float) and math.isnan(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def cell_text(value: Any) -> str:
    """Text form of a cell; integral floats lose their trailing '.0'."""
    if is_blank(value):
        return ""
    if _is_number(value) and float(value).is_integer():
        return str(int(value))
    return str(value)


def _yy_mm_dd(d: date) -> str:
    return f"{d.year % 100:02d}/{d.month:02d}/{d.day:02d}"


def convert_excel_date(value: Any) -> str:
    """
    Normalise a date cell to 'YY/MM/DD'.

    - str             : returned verbatim
    - number          : Excel serial, days since 1899-12-30
    - date / datetime : formatted
    - anything else   : str(value)
    """
    if isinstance(value, str):
        return value
    if _is_number(value):
        converted = EXCEL_EPOCH + timedelta(milliseconds=float(value) * MS_PER_DAY)
        return _yy_mm_dd(converted)
    if isinstance(value, (date, datetime)):
        return _yy_mm_dd(value)
    return str(value)


def parse_is_cms(value: Any) -> bool:
    # Only exact True, "TRUE" or 1; lowercase "true" stays False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value == "TRUE"
    return _is_number(value) and value == 1


def parse_keywords(value: Any) -> List[str]:
    if is_blank(value) or value == "":
        return []
    return [k.strip() for k in str(value).split(",") if k.strip()]


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------

def _is_valid(row: Dict[str, Any]) -> bool:
    for key in REQUIRED_FIELDS:
        value = row.get(key)
        if is_blank(value) or not value:
            return False
    return True


def parse_issue_row(row: Dict[str, Any]) -> ParsedIssueRow:
    return ParsedIssueRow(
        ticker=cell_text(row.get("ticker")),
        date=convert_excel_date(row.get("date")),
        title=cell_text(row.get("title")),
        content=cell_text(row.get("content")),
        source=cell_text(row.get("source")),
        is_cms=parse_is_cms(row.get("is_cms")),
        keywords=parse_keywords(row.get("keywords")),
    )


def parse_issue_rows(rows: Iterable[Dict[str, Any]]) -> List[ParsedIssueRow]:
    """Keep rows with ticker, date, title and content; parse each in input order."""
    return [parse_issue_row(row) for row in rows if _is_valid(row)]
