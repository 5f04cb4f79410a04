"""
CMS Portfolio Service — Core Metadata
-------------------------------------
Project identity shared by the backend (`/` and `/health`) and the UI footers.
"""

__project__ = "CMS Portfolio Service"
__version__ = "1.4.0"

COPYRIGHT = "© 2026 CMS Securities. All rights reserved."

SURFACES = ("client dashboard", "admin back office", "backend api")


def get_metadata() -> dict:
    """Identity block returned by the backend root endpoint."""
    return {
        "service": __project__,
        "version": __version__,
        "surfaces": list(SURFACES),
    }
