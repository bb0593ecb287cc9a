"""
Transaction helpers for SQLAlchemy sessions
"""
from sqlalchemy.orm import Session
from typing import Callable
from functools import wraps
import logging

logger = logging.getLogger(__name__)


def atomic_transaction(func: Callable) -> Callable:
    """
    Decorator that commits the session when the wrapped function returns
    and rolls it back when it raises.

    Usage:
        @atomic_transaction
        def my_db_function(db: Session, ...):
            ...

    The decorated function must accept the session as its first parameter.
    The original exception is re-raised after the rollback.
    """
    @wraps(func)
    def wrapper(db: Session, *args, **kwargs):
        try:
            result = func(db, *args, **kwargs)
            db.commit()
            logger.debug(f"Transaction committed: {func.__name__}")
            return result

        except Exception as e:
            db.rollback()
            logger.error(f"Transaction rolled back: {func.__name__} - Error: {e}")
            raise

    return wrapper
