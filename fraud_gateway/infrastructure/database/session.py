"""Database session management"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fraud_gateway.config import settings

if settings.database_url.startswith("sqlite"):
    # Sync endpoints run in a threadpool
    engine = create_engine(settings.database_url, connect_args={"check_same_thread": False})
else:
    # Recycle after 1 hour to avoid stale connections
    engine = create_engine(
        settings.database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=10,
        pool_recycle=3600,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create tables that do not exist yet"""
    from fraud_gateway.infrastructure.database.models import Base

    Base.metadata.create_all(bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
