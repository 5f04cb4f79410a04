"""
core/logging_config.py
----------------------
One-shot logging setup shared by the FastAPI backend and the Streamlit apps.
"""

from __future__ import annotations

import logging

from core.config import get_settings

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s — %(message)s"
_configured = False


def configure_logging(level: str | None = None) -> None:
    """Install a root handler once; later calls only adjust the level."""
    global _configured

    resolved = (level or get_settings().log_level).upper()
    root = logging.getLogger()
    if not _configured:
        logging.basicConfig(level=resolved, format=_FORMAT)
        # supabase-py / httpx are chatty at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        _configured = True
    root.setLevel(resolved)
