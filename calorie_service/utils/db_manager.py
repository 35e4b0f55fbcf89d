# utils/db_manager.py
from sqlalchemy import create_engine, DateTime
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings


def build_engine(database_url: str):
    """Create an engine, with the extra arguments SQLite needs for threaded use."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live on a single connection
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)
    return create_engine(database_url, pool_pre_ping=True)


# Create the SQLAlchemy engine
engine = build_engine(settings.DATABASE_URL)

# Create a SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()

# Microsecond precision everywhere; event cursors compare on these values
PreciseDateTime = DateTime().with_variant(mysql.DATETIME(fsp=6), "mysql")


def get_db():
    """Dependency for getting db session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Dependency for work that outlives the request (background tasks, streams)"""
    return SessionLocal
