"""Database session utilities for proper session lifecycle management."""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


@contextmanager
def get_db_session(
    session_maker: Optional[Callable[[], Session]] = None,
) -> Iterator[Session]:
    """Context manager for database sessions.

    Commits on success, rolls back on exception and always closes the session.
    """
    if session_maker is None:
        from wslstack.models.database import SessionLocal

        session_maker = SessionLocal

    db = session_maker()
    try:
        yield db
        db.commit()
    except Exception as e:
        logger.error(f"Database session error: {e}")
        db.rollback()
        raise
    finally:
        db.close()
