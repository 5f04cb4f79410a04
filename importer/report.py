# importer/report.py
"""Outcome objects for bulk imports, shaped like the backend RPC results."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class RowError:
    ticker: str
    row: int
    reason: str


@dataclass
class ImportReport:
    inserted: int = 0
    skipped: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    duplicate_count: int = 0
    errors: List[RowError] = field(default_factory=list)

    @classmethod
    def failure(cls, reason: str) -> "ImportReport":
        return cls(errors=[RowError(ticker="-", row=0, reason=reason)])

    @classmethod
    def from_result(cls, result: Optional[Dict[str, Any]]) -> "ImportReport":
        result = result or {}
        errors = [
            RowError(
                ticker=str(e.get("ticker", "-")),
                row=int(e.get("row") or 0),
                reason=str(e.get("reason") or ""),
            )
            for e in result.get("errors") or []
        ]
        duplicates = [str(d) for d in result.get("duplicates") or []]
        return cls(
            inserted=int(result.get("inserted") or 0),
            skipped=[str(s) for s in result.get("skipped") or []],
            duplicates=duplicates,
            duplicate_count=int(result.get("duplicate_count") or len(duplicates)),
            errors=errors,
        )

    @property
    def ok(self) -> bool:
        return not self.errors

    def metrics(self) -> List[Tuple[str, int]]:
        """Headline counts shown above the row details."""
        return [
            ("등록", self.inserted),
            ("미등록 종목", len(self.skipped)),
            ("중복 스킵", self.duplicate_count),
            ("오류", len(self.errors)),
        ]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StockImportReport:
    updated: int = 0
    inserted: int = 0
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: Optional[Dict[str, Any]]) -> "StockImportReport":
        result = result or {}
        return cls(updated=int(result.get("updated") or 0), inserted=int(result.get("inserted") or 0))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
