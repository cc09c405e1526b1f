"""Database session. SQLite for development, pooled connections for PostgreSQL/MySQL."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from medportal.core.config import settings

connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)

if settings.DATABASE_URL.startswith("sqlite"):
    # SQLite: Use NullPool for thread-safety
    from sqlalchemy.pool import NullPool
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args=connect_args,
        poolclass=NullPool
    )
else:
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args=connect_args,
        pool_size=5,  # Number of persistent connections
        max_overflow=10,  # Max temporary connections
        pool_timeout=30,  # Seconds to wait for connection
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True  # Verify connection health
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
