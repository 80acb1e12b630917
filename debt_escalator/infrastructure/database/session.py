"""Database session management with connection pooling"""

from typing import Any, Dict

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from debt_escalator.config import settings


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool settings; SQLite gets thread sharing instead of a sized pool"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # Connection pool: max 20 connections, recycle after 1 hour to avoid stale connections
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
