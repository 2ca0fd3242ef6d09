"""SQL mirror engine and session management.

The mirror is optional (``ENABLE_CLOUDFLARE_DATABASE``), so nothing here
runs at import time; ``create_mirror_engine`` is called once from
``build_clients`` when the mirror is enabled.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Create base class for models
Base = declarative_base()


def create_mirror_engine(database_url: str) -> Engine:
    """Create an engine with database-specific tuning."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # An in-memory database lives and dies with its connection, so every
        # session must share the one connection.
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    # Detects stale connections before use (prevents "server closed the connection" errors).
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Create the session factory and make sure the mirror tables exist."""
    from . import models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
