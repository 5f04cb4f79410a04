# tests/conftest.py
"""
Shared fixtures: an in-memory stand-in for the Supabase client.

`FakeSupabase` supports the postgrest builder calls the data access layer
uses (select/insert/update/delete, eq, in_, is_, or_, order, limit),
`rpc()` with canned results, and a storage bucket that records uploads.
"""

from __future__ import annotations

import copy
import itertools
from typing import Any, Callable, Dict, List, Optional

import pytest


class FakeResponse:
    def __init__(self, data: Any):
        self.data = data


def _or_predicate(expr: str) -> Callable[[Dict[str, Any]], bool]:
    # "client_id.eq.c1,client_id.is.null"
    clauses = []
    for part in expr.split(","):
        col, op, value = part.split(".", 2)
        if op == "eq":
            clauses.append(lambda r, c=col, v=value: str(r.get(c)) == v)
        elif op == "is" and value == "null":
            clauses.append(lambda r, c=col: r.get(c) is None)
        else:
            raise NotImplementedError(part)
    return lambda r: any(clause(r) for clause in clauses)


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.payload: Any = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.orders: List[tuple] = []
        self._limit: Optional[int] = None

    # --- operations ---
    def select(self, columns: str = "*"):
        self.op = "select"
        self.columns = columns
        return self

    def insert(self, data):
        self.op, self.payload = "insert", data
        return self

    def update(self, data):
        self.op, self.payload = "update", data
        return self

    def delete(self):
        self.op = "delete"
        return self

    # --- filters ---
    def eq(self, col, value):
        self.filters.append(lambda r: r.get(col) == value)
        return self

    def in_(self, col, values):
        values = list(values)
        self.filters.append(lambda r: r.get(col) in values)
        return self

    def is_(self, col, value):
        assert value == "null"
        self.filters.append(lambda r: r.get(col) is None)
        return self

    def or_(self, expr):
        self.filters.append(_or_predicate(expr))
        return self

    def order(self, col, desc=False):
        self.orders.append((col, desc))
        return self

    def limit(self, n):
        self._limit = n
        return self

    # --- execution ---
    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def execute(self):
        self.db.calls.append((self.table, self.op, copy.deepcopy(self.payload)))
        if self.table in self.db.failing_tables:
            raise RuntimeError(f"{self.table} unavailable")
        rows = self.db.tables.setdefault(self.table, [])

        if self.op == "insert":
            new = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in new:
                row = dict(item)
                row.setdefault("id", f"{self.table}-{next(self.db.ids)}")
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        matched = [r for r in rows if self._matches(r)]
        if self.op == "update":
            for r in matched:
                r.update(self.payload)
            return FakeResponse(copy.deepcopy(matched))
        if self.op == "delete":
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(matched))

        result = copy.deepcopy(matched)
        for col, desc in reversed(self.orders):
            result.sort(key=lambda r: (r.get(col) is None, r.get(col) if r.get(col) is not None else 0), reverse=desc)
        if self._limit is not None:
            result = result[: self._limit]
        return FakeResponse(result)


class FakeRpc:
    def __init__(self, db: "FakeSupabase", fn: str, params: Dict[str, Any]):
        self.db, self.fn, self.params = db, fn, params

    def execute(self):
        self.db.rpc_calls.append((self.fn, copy.deepcopy(self.params)))
        result = self.db.rpc_results.get(self.fn)
        if isinstance(result, Exception):
            raise result
        if callable(result):
            result = result(self.params)
        return FakeResponse(result)


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage, self.name = storage, name

    def upload(self, path, content, file_options=None):
        if any(path.endswith(f) for f in self.storage.failing_files):
            raise RuntimeError(f"upload rejected: {path}")
        self.storage.uploads.append((self.name, path))
        return {"path": path}

    def get_public_url(self, path):
        return f"https://cdn.test/{self.name}/{path}"

    def remove(self, paths):
        self.storage.removed.extend((self.name, p) for p in paths)
        return [{"name": p} for p in paths]


class FakeStorage:
    def __init__(self):
        self.uploads: List[tuple] = []
        self.removed: List[tuple] = []
        self.failing_files: List[str] = []

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeSupabase:
    supabase_url = "https://fake.supabase.test"

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(tables or {})
        self.calls: List[tuple] = []
        self.rpc_calls: List[tuple] = []
        self.rpc_results: Dict[str, Any] = {}
        self.failing_tables: set = set()
        self.storage = FakeStorage()
        self.ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, fn: str, params: Optional[Dict[str, Any]] = None) -> FakeRpc:
        return FakeRpc(self, fn, params or {})

    def rpc_params(self, fn: str) -> List[Dict[str, Any]]:
        return [p for name, p in self.rpc_calls if name == fn]


@pytest.fixture
def fake_sb() -> FakeSupabase:
    return FakeSupabase()


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start: int = 1_700_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stock_rows() -> List[Dict[str, Any]]:
    return [
        {
            "id": "s1", "ticker": "002050.SZ", "name": "Sanhua", "name_kr": "싼화",
            "sector": "기계 장비", "keywords": ["로봇", "열관리"], "market_cap": "12조 3,456억원",
            "market_cap_value": 1234560000000000 // 100, "return_rate": 12.5,
        },
        {
            "id": "s2", "ticker": "9988.HK", "name": "Alibaba", "name_kr": "알리바바",
            "sector": "온라인 서비스", "keywords": ["클라우드"], "market_cap": "300조",
            "market_cap_value": 300 * 10**12, "return_rate": None,
        },
        {
            "id": "s3", "ticker": "688981.SS", "name": "SMIC", "name_kr": "SMIC",
            "sector": "반도체", "keywords": [], "market_cap": "80조 5,000억원",
            "market_cap_value": 80 * 10**12 + 5000 * 10**8, "return_rate": -3.0,
        },
    ]


@pytest.fixture
def make_sb() -> Callable[..., FakeSupabase]:
    """Factory for a FakeSupabase pre-filled with table rows."""
    return FakeSupabase
