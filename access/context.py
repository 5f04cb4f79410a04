# access/context.py
"""
SessionContext: the client session, admin session and UI preferences of one
browser session, loaded from and saved to a `StateStore`.

Entry points build one explicitly and hand it to the view layer. When several
browsers share one store, `namespace` keeps their entries apart.
"""

from __future__ import annotations

from typing import Optional

from access.preferences import UIPreferences
from access.session import AdminSession, ClientSession, Clock, now_ms
from core.config import ADMIN_AUTH_STORAGE_KEY, AUTH_STORAGE_KEY, UI_STORAGE_KEY
from database.queries import StateStore


class SessionContext:
    def __init__(self, store: StateStore, clock: Optional[Clock] = None, namespace: Optional[str] = None):
        self.store = store
        self.clock = clock or now_ms
        self.namespace = namespace
        self.client = ClientSession.from_dict(store.get(self._key(AUTH_STORAGE_KEY)), clock=self.clock)
        self.admin = AdminSession.from_dict(store.get(self._key(ADMIN_AUTH_STORAGE_KEY)), clock=self.clock)
        self.ui = UIPreferences.from_dict(store.get(self._key(UI_STORAGE_KEY)))

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    def save(self) -> None:
        self.store.put(self._key(AUTH_STORAGE_KEY), self.client.to_dict())
        self.store.put(self._key(ADMIN_AUTH_STORAGE_KEY), self.admin.to_dict())
        self.store.put(self._key(UI_STORAGE_KEY), self.ui.to_dict())

    def logout_client(self) -> None:
        self.client.logout()
        self.ui.reset()
        self.save()

    def logout_admin(self) -> None:
        self.admin.logout()
        self.save()
