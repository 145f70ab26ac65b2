from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool

from app.core.config import DATABASE_URL

SQLALCHEMY_DATABASE_URL = DATABASE_URL


def build_engine(url: str):
    """Create an engine for `url` with the pool settings used by the API."""
    if url.startswith("sqlite"):
        # Sync route handlers run in a thread pool; one connection per request thread
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30},
            pool_pre_ping=True,
        )
    # Configure connection pooling to prevent connection exhaustion
    # under concurrent requests from many users
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=10,  # Number of connections to maintain persistently
        max_overflow=20,  # Maximum number of connections to create beyond pool_size
        pool_timeout=30,  # Seconds to wait before giving up on getting a connection
        pool_pre_ping=True,  # Verify connections before using them (handles stale connections)
        pool_recycle=3600,  # Recycle connections after 1 hour to prevent stale connections
        echo=False  # Set to True for SQL query logging (useful for debugging)
    )


engine = build_engine(SQLALCHEMY_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
