# database/db_setup.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base

from core.config import get_settings

# ---------------------------------------------------------------------
# Base class for ORM models
# ---------------------------------------------------------------------
Base = declarative_base()


# ---------------------------------------------------------------------
# Engine factory
# ---------------------------------------------------------------------
def get_engine(db_path: str | None = None):
    """
    Return a SQLAlchemy Engine for the local state database and make sure
    its tables exist.

    The database lives at CMS_STATE_DB (default: database/cms_state.db) and
    only holds the persisted client-side state (sessions, UI preferences).

    Example:
        engine = get_engine()
    """
    path = db_path or get_settings().state_db_path
    engine = create_engine(f"sqlite:///{path}", echo=False, future=True)

    from . import models  # noqa: F401  (registers tables on Base)

    Base.metadata.create_all(engine)
    return engine
