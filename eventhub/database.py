"""Database configuration and session management."""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from eventhub import config

SQLALCHEMY_DATABASE_URL = config.DATABASE_URL


def create_db_engine(url: str, **engine_kwargs) -> Engine:
    """Build an engine configured for the database type behind ``url``."""
    if url.startswith("sqlite"):
        # SQLite-specific config: requests are served from a thread pool
        db_engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 15},
            **engine_kwargs
        )
        event.listen(db_engine, "connect", _enable_sqlite_foreign_keys)
        return db_engine

    # PostgreSQL config (production)
    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=5,
        max_overflow=10,
        **engine_kwargs
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = create_db_engine(SQLALCHEMY_DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Dependency for FastAPI endpoints to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
