"""
core/health.py
--------------
System health diagnostics for the CMS backend.

Purpose
-------
- Used by the FastAPI `/health` endpoint and the admin sidebar.
- Validates Supabase connectivity with a one-row read on `stocks`.
- Reports uptime, version, CPU/memory usage.
- Returns JSON-safe dict ready for serialization.
"""

from __future__ import annotations

import platform
import time
from typing import Any, Dict

import psutil

from core.metadata import __version__
from supabase_client.helpers import test_connection


# Cache the process start time for uptime calculation
START_TIME = time.time()


def system_health() -> Dict[str, Any]:
    """
    Return structured backend health diagnostics.

    Returns
    -------
    dict
        status is "ok" when Supabase answers, "degraded" otherwise.
    """
    supabase_url = test_connection()
    supabase_connected = supabase_url is not None

    cpu_load = psutil.cpu_percent(interval=0.2)
    memory_usage = round(psutil.virtual_memory().used / (1024 * 1024), 2)

    return {
        "status": "ok" if supabase_connected else "degraded",
        "message": "Backend operational." if supabase_connected else "Supabase check failed.",
        "version": __version__,
        "supabase_connected": supabase_connected,
        "supabase_url": supabase_url,
        "cpu_load": cpu_load,
        "memory_usage": memory_usage,
        "uptime_sec": round(time.time() - START_TIME, 2),
        "system": platform.system(),
        "release": platform.release(),
    }
