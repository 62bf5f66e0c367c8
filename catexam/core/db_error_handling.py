"""
Database error handling utilities.

Every CAT engine operation runs inside one unit of work: the wrapped block
either commits as a whole or is rolled back as a whole. Domain errors raised
inside the block pass through unchanged after the rollback.

Conflicts between concurrent writers on the same CAT session surface from
the database as an IntegrityError (unique selection position / result per
question) or a StaleDataError (optimistic version counter on cat_sessions).
Both mean another request already advanced the session, so they are
reported as OutOfSequenceError.

Usage:
    from catexam.core.db_error_handling import unit_of_work

    with unit_of_work(db, "submit CAT answer", session_id=session.id):
        ...
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from catexam.core.exceptions import CATError, OutOfSequenceError

logger = logging.getLogger(__name__)

CONCURRENT_UPDATE_MESSAGE = (
    "The CAT session was modified by another request. Please fetch the "
    "current question and try again."
)


class DatabaseOperationError(Exception):
    """Exception raised when a database operation fails.

    Wraps the underlying SQLAlchemy error with the name of the operation
    that failed. The application maps it to a 500 response.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception that caused the failure
        message: The formatted error message
    """

    def __init__(
        self,
        operation_name: str,
        original_error: Exception,
        message: Optional[str] = None,
    ):
        self.operation_name = operation_name
        self.original_error = original_error
        self.message = message or f"Failed to {operation_name}: {str(original_error)}"
        super().__init__(self.message)


@contextmanager
def unit_of_work(
    db: Session,
    operation_name: str,
    *,
    session_id: Optional[int] = None,
) -> Generator[None, None, None]:
    """Run a block as one transaction: commit on success, roll back on error.

    Args:
        db: The SQLAlchemy session to commit or roll back.
        operation_name: Human-readable name of the operation for logging
            (e.g., "create CAT test", "submit CAT answer").
        session_id: CAT session involved, attached to logs and to
            OutOfSequenceError.

    Raises:
        CATError: Re-raised unchanged after rollback.
        OutOfSequenceError: On a write conflict with a concurrent request.
        DatabaseOperationError: On any other database failure.
    """
    try:
        yield
        db.commit()
    except CATError:
        db.rollback()
        raise
    except (IntegrityError, StaleDataError) as e:
        db.rollback()
        logger.warning(
            f"Concurrent update detected during {operation_name}: {e}",
            extra={"session_id": session_id},
        )
        raise OutOfSequenceError(CONCURRENT_UPDATE_MESSAGE, session_id=session_id) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Database error during {operation_name}: {e}",
            exc_info=True,
            extra={"session_id": session_id},
        )
        raise DatabaseOperationError(operation_name, e) from e
    except Exception:
        db.rollback()
        raise
