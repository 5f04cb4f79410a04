"""
core/formatting.py
------------------
Market-cap helpers.

Market caps are stored as display strings such as "33조 1,287억원".
These helpers turn them into an exact integer (for sorting and the
`market_cap_value` column), a compact label, or the split components
used by the detail view.
"""

from __future__ import annotations

import re
from typing import Dict, Optional

JO = 10**12
OK = 10**8
MAN = 10**4

_NUMBER = r"(\d+(?:,\d+)*)"
_JO_RE = re.compile(_NUMBER + r"\s*조")
_OK_RE = re.compile(_NUMBER + r"\s*억")
_MAN_RE = re.compile(_NUMBER + r"\s*만")
_OK_AFTER_JO_RE = re.compile(r"조\s*" + _NUMBER + r"\s*억")


def _to_int(match: re.Match) -> int:
    return int(match.group(1).replace(",", ""))


def parse_market_cap_to_value(cap: Optional[str]) -> int:
    """
    Convert a market-cap string to an integer number of won.

    Examples
    --------
    >>> parse_market_cap_to_value("33조 1,287억원")
    33128700000000
    >>> parse_market_cap_to_value("1,500억원")
    150000000000
    >>> parse_market_cap_to_value("")
    0
    """
    if not cap:
        return 0

    total = 0
    jo = _JO_RE.search(cap)
    if jo:
        total += _to_int(jo) * JO
    ok = _OK_RE.search(cap)
    if ok:
        total += _to_int(ok) * OK
    man = _MAN_RE.search(cap)
    if man:
        total += _to_int(man) * MAN
    return total


def format_market_cap_short(cap: Optional[str]) -> str:
    """'33조 1,287억원' -> '33.1조'; empty -> '-'."""
    if not cap:
        return "-"
    parts = cap.split(" ")
    if len(parts) < 2:
        return cap
    jo_part = parts[0].replace("조", "")
    ok_part = parts[1].replace("억원", "").replace(",", "", 1)
    first_digit = ok_part[:1] or "0"
    return f"{jo_part}.{first_digit}조"


def parse_market_cap(cap: Optional[str]) -> Optional[Dict[str, str]]:
    """Split into {'jo', 'ok'} digit strings for styled rendering, or None."""
    if not cap:
        return None
    jo = _JO_RE.search(cap)
    ok = _OK_AFTER_JO_RE.search(cap)
    if not jo or not ok:
        return None
    return {
        "jo": jo.group(1).replace(",", ""),
        "ok": ok.group(1).replace(",", ""),
    }
