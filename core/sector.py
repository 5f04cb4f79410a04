"""
core/sector.py
--------------
Sector simplification for list and detail views.

Free-text sector strings coming from the stock table (e.g. "반도체 장비",
"전기 통신 장비") are folded into a small, ordered set of display categories.
The first category with a matching keyword wins; unmatched input is returned
unchanged, so the function is total and idempotent.
"""

from __future__ import annotations

from typing import List, NamedTuple, Optional


class SectorMapping(NamedTuple):
    keywords: tuple
    long: str
    short: str


# Order matters: "반도체 장비" must land in 반도체, not 산업재.
SECTOR_MAPPINGS: List[SectorMapping] = [
    SectorMapping(("반도체",), "반도체", "반도체"),
    SectorMapping(("자동차", "트럭"), "자동차", "자동차"),
    SectorMapping(("기계", "장비", "자동화"), "산업재 / 자동화", "산업재"),
    SectorMapping(("제약", "생명 공학"), "바이오", "바이오"),
    SectorMapping(("온라인", "서비스"), "서비스 / 플랫폼", "서비스"),
    SectorMapping(("전기", "통신", "인터넷", "장치"), "IT / 인프라", "IT"),
]


def simplify_sector(sector: Optional[str], short: bool = False) -> str:
    """
    Map a raw sector string to its display category.

    Parameters
    ----------
    sector : str
        Raw sector text. ``None`` is treated as an empty string.
    short : bool
        Return the abbreviated tag (e.g. "IT") instead of the long label.
    """
    text = sector or ""
    for mapping in SECTOR_MAPPINGS:
        if any(keyword in text for keyword in mapping.keywords):
            return mapping.short if short else mapping.long
    return text


def all_simplified_sectors(short: bool = False) -> List[str]:
    """Return every category label in priority order."""
    return [m.short if short else m.long for m in SECTOR_MAPPINGS]
