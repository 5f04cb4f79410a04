"""
core/config.py
--------------
Central configuration hub for the CMS Portfolio Service.

- Reads Supabase, backend and Gemini settings from environment variables.
- Holds the session / timer constants shared by the client and admin surfaces.
- Exposes a frozen `Settings` snapshot via `get_settings()`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

# ---------------------------------------------------------------------------
# Session & timer constants
# ---------------------------------------------------------------------------

CLIENT_SESSION_DURATION_MS = 60 * 60 * 1000        # 1 hour
ADMIN_SESSION_DURATION_MS = 2 * 60 * 60 * 1000     # 2 hours

CLIENT_TIMER_INTERVAL_MS = 1000
ADMIN_TIMER_INTERVAL_MS = 60 * 1000

DEFAULT_CODE_VERSION = "1"
ADMIN_CODE_HEADER = "x-admin-code"

# Persisted state keys
AUTH_STORAGE_KEY = "cms-auth-storage"
ADMIN_AUTH_STORAGE_KEY = "cms-admin-auth-storage"
UI_STORAGE_KEY = "cms-ui-storage"

# Storage
IMAGE_BUCKET = "images"
RESOURCE_BUCKET = "resources"

# Generative summary
GEMINI_MODEL = "gemini-2.5-flash-lite"
GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models"


# ---------------------------------------------------------------------------
# Environment-backed settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    supabase_url: Optional[str]
    supabase_anon_key: Optional[str]
    backend_url: str
    gemini_api_key: Optional[str]
    state_db_path: str
    log_level: str


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Snapshot environment configuration (cached; call `get_settings.cache_clear()` in tests)."""
    default_db = os.path.join(os.path.dirname(os.path.dirname(__file__)), "database", "cms_state.db")
    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_anon_key=os.getenv("SUPABASE_ANON_KEY"),
        backend_url=os.getenv("BACKEND_URL", "http://127.0.0.1:8000").rstrip("/"),
        gemini_api_key=os.getenv("GEMINI_API_KEY"),
        state_db_path=os.getenv("CMS_STATE_DB", default_db),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
