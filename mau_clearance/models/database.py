"""
Database handle and storage error translation
"""

from contextlib import contextmanager
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError
from mau_clearance.utils.exceptions import StorageError

db = SQLAlchemy()


@contextmanager
def storage_guard(operation: str):
    """
    Roll back and re-raise database failures as retryable StorageError

    Args:
        operation: Human readable operation name used in the error message
    """
    try:
        yield db.session
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(f"Storage failure during {operation}. Please retry.") from e


def init_db() -> None:
    """Create database tables"""
    db.create_all()
