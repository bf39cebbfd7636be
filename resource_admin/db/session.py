"""Database engine and session factory configuration."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from resource_admin.core.config import get_settings

settings = get_settings()


def build_engine(url: str, *, echo: bool = False):
    """Create an engine; SQLite connections are allowed to cross threads for the test client."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, pool_pre_ping=True, echo=echo, connect_args=connect_args)


engine = build_engine(settings.sql_database_url, echo=settings.database_echo)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
