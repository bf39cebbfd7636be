"""Database bootstrapping utilities."""

from __future__ import annotations

import logging

from resource_admin.db import session as db_session
from resource_admin.models.base import Base

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all tables registered on the declarative base if they do not exist."""
    try:
        Base.metadata.create_all(bind=db_session.engine)
    except Exception:
        logger.exception("Failed to create tables during database initialization")
        raise
    logger.info("Database initialized with %s tables", len(Base.metadata.tables))
