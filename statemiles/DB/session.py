"""
statemiles/DB/session.py
======================================
Database Session Configuration Module
======================================

Creates the SQLAlchemy engine and the session factory used by request
handlers (through `Controller.deps.get_DB`) and by startup code.

Usage Example:
-------------
    from statemiles.DB.session import SessionLocal

    with SessionLocal() as db:
        trips = trip_repo.get_trips_by_user(db, "user-1", status="active")

Session Configuration:
---------------------
- autocommit=False: Repositories commit explicitly
- autoflush=False: Changes are flushed on commit only
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from statemiles.Core.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite connections are shared with FastAPI's threadpool
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


# ============================================================
# DATABASE ENGINE CONFIGURATION
# ============================================================
engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))


# ============================================================
# SESSION FACTORY CONFIGURATION
# ============================================================
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)
