"""Engine, session factory and the request-scoped session dependency."""

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from wealth.config import settings


class Base(DeclarativeBase):
    pass


def _engine_options(database_url: str) -> dict:
    """Engine options per backend.

    PostgreSQL gets a connection pool, READ COMMITTED isolation and a lock
    timeout so snapshot batches never block API reads indefinitely. SQLite
    connections are shared across the snapshot worker threads.
    """
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}

    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
        "isolation_level": "READ COMMITTED",
        "connect_args": {"options": "-c lock_timeout=5000"},
    }


engine = create_engine(settings.database_url, echo=False, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # routers return ORM objects after commit
)


def get_db() -> Generator[Session, None, None]:
    """One session per request, closed when the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
