"""Database initialization utilities."""
from typing import Optional

from sqlalchemy.engine import Engine

from messmate.core.logging import get_logger
from messmate.models import Base

logger = get_logger(__name__)


def _bind(bind: Optional[Engine]) -> Engine:
    if bind is not None:
        return bind
    from messmate.db.session import engine

    return engine


def init_db(bind: Optional[Engine] = None) -> None:
    """
    Create all tables that do not exist yet.

    Suitable for development and tests; production deployments manage the
    schema with migrations.
    """
    engine = _bind(bind)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured", extra={"tables": len(Base.metadata.tables)})


def drop_db(bind: Optional[Engine] = None) -> None:
    """Drop every table. Development and tests only."""
    Base.metadata.drop_all(bind=_bind(bind))
    logger.warning("All database tables dropped")


def reset_db(bind: Optional[Engine] = None) -> None:
    drop_db(bind)
    init_db(bind)
