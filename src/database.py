"""
Database engine, sessions and table creation for the account and clinical
record stores.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from .config import settings

logger = logging.getLogger(__name__)

def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Sync routes run in a threadpool, so one connection is shared across threads
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}

engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

Base = declarative_base()

def init_db(bind=None):
    """Register every model on Base and create the missing tables."""
    from .auth import models as auth_models  # noqa: F401
    from .patients import models as patient_models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info(f"Database tables ready: {sorted(Base.metadata.tables)}")

def get_db():
    """
    Request-scoped session dependency.

    Uncommitted work is rolled back when the request fails, and the session
    is always closed.

    Yields:
        SQLAlchemy Session: Database session
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
