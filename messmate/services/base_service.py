"""
Base service: shared logger, session and transaction handling.
"""

import time
from contextlib import contextmanager
from functools import wraps
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from messmate.core.exceptions import BaseAppException, DuplicateEntryError, ServerError
from messmate.core.logging import get_logger

logger = get_logger(__name__)

_TX_DEPTH_KEY = "messmate_tx_depth"


def track_performance(operation_name: str):
    """Log duration and outcome of a service operation."""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except BaseAppException as e:
                logger.info(
                    f"Operation '{operation_name}' rejected: {e.message}",
                    extra={
                        "operation": operation_name,
                        "duration_seconds": round(time.perf_counter() - start, 4),
                        "error_code": e.error_code.value,
                    },
                )
                raise
            except Exception as e:
                logger.error(
                    f"Operation '{operation_name}' failed: {e}",
                    extra={
                        "operation": operation_name,
                        "duration_seconds": round(time.perf_counter() - start, 4),
                    },
                    exc_info=True,
                )
                raise
            logger.info(
                f"Operation '{operation_name}' completed",
                extra={
                    "operation": operation_name,
                    "duration_seconds": round(time.perf_counter() - start, 4),
                },
            )
            return result
        return wrapper
    return decorator


class BaseService:
    """
    Base for all services.

    Services share the request's session. ``transaction()`` nests: only the
    outermost block commits, and any exception rolls the whole unit back.
    """

    def __init__(self, db: Session):
        self.db: Session = db
        self._logger = get_logger(self.__class__.__module__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        depth = self.db.info.get(_TX_DEPTH_KEY, 0)
        self.db.info[_TX_DEPTH_KEY] = depth + 1
        try:
            yield self.db
            if depth == 0:
                self.db.commit()
        except BaseAppException:
            if depth == 0:
                self.db.rollback()
            raise
        except IntegrityError as e:
            if depth == 0:
                self.db.rollback()
            self._logger.warning(f"Integrity error: {e.orig}")
            raise DuplicateEntryError("Resource violates a uniqueness or integrity constraint") from e
        except SQLAlchemyError as e:
            if depth == 0:
                self.db.rollback()
            self._logger.error(f"Database error: {e}", exc_info=True)
            raise ServerError("Database error") from e
        except Exception:
            if depth == 0:
                self.db.rollback()
            raise
        finally:
            self.db.info[_TX_DEPTH_KEY] = depth
