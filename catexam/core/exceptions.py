"""
Domain exceptions raised by the CAT engine.

These are transport-agnostic. The HTTP layer translates them into responses
via ``catexam.core.error_responses.CAT_ERROR_STATUS_CODES``.

Numeric edge cases (zero curvature in Newton-Raphson, saturating
probabilities, all-zero information) are handled inside the core and are
never raised.
"""
from typing import Optional


class CATError(Exception):
    """Base class for all CAT engine errors.

    Attributes:
        message: Human-readable description of the failure.
        session_id: CAT session involved, when known.
    """

    def __init__(self, message: str, session_id: Optional[int] = None):
        self.message = message
        self.session_id = session_id
        super().__init__(message)


class EmptyPoolError(CATError):
    """No eligible questions exist for a new CAT test.

    Fatal for the request: retrying without changing the pool criteria
    (topics) will fail the same way.
    """


class OutOfSequenceError(CATError):
    """An answer was submitted for a question that is not currently in flight.

    Also raised when a concurrent writer already consumed the in-flight
    position (double submission). State is never mutated when this is raised.
    """

    def __init__(
        self,
        message: str,
        session_id: Optional[int] = None,
        question_id: Optional[int] = None,
        expected_question_id: Optional[int] = None,
    ):
        super().__init__(message, session_id=session_id)
        self.question_id = question_id
        self.expected_question_id = expected_question_id


class SessionClosedError(OutOfSequenceError):
    """The operation requires an in-progress session but it already terminated.

    A terminated session has no question in flight, so an answer repeated
    after the final submission is out of sequence as well.
    """

    def __init__(self, message: str, session_id: Optional[int] = None, status: str = ""):
        super().__init__(message, session_id=session_id)
        self.status = status


class UnauthorizedSessionAccessError(CATError):
    """The caller does not own the CAT session."""


class NotFoundError(CATError):
    """Unknown CAT session, test or question id."""
