# database/queries.py
"""
Durable key-value storage for client-side state.

`SqlStateStore` persists JSON values in the local SQLite database so a
session survives reloads and restarts; `MemoryStateStore` has the same
interface for tests and ephemeral runs.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional, Protocol

from sqlalchemy.orm import sessionmaker

from .db_setup import get_engine
from .models import StoredState


class StateStore(Protocol):
    def get(self, key: str) -> Optional[Dict[str, Any]]: ...

    def put(self, key: str, value: Dict[str, Any]) -> None: ...

    def delete(self, key: str) -> bool: ...


class MemoryStateStore:
    """Dict-backed store. Values are deep-copied in and out."""

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None


class SqlStateStore:
    """SQLAlchemy-backed store on the `stored_state` table."""

    def __init__(self, engine=None) -> None:
        self._engine = engine if engine is not None else get_engine()
        self._session = sessionmaker(bind=self._engine, autoflush=False, autocommit=False)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the stored value or None."""
        with self._session() as session:
            row = session.get(StoredState, key)
            return dict(row.value) if row is not None else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        """Insert or replace the value under `key`."""
        with self._session() as session:
            row = session.get(StoredState, key)
            if row is None:
                session.add(StoredState(key=key, value=value))
            else:
                row.value = value
            session.commit()

    def delete(self, key: str) -> bool:
        """Delete by key. Returns True if deleted."""
        with self._session() as session:
            row = session.get(StoredState, key)
            if row is None:
                return False
            session.delete(row)
            session.commit()
            return True
