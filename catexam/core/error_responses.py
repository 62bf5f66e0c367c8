"""
Standardized error response messages and builders.

This module provides consistent error messages and HTTPException builders
for the entire API, plus the mapping from CAT domain exceptions to HTTP
status codes.

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Include relevant IDs in parentheses when helpful for debugging: "(ID: 123)"

Usage:
    from catexam.core.error_responses import ErrorMessages, raise_unauthorized

    if not caller_id:
        raise_unauthorized(ErrorMessages.CALLER_ID_MISSING)
"""

from typing import Dict, NoReturn, Optional, Type

from fastapi import HTTPException, status

from catexam.core.exceptions import (
    CATError,
    EmptyPoolError,
    NotFoundError,
    OutOfSequenceError,
    SessionClosedError,
    UnauthorizedSessionAccessError,
)


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Authentication Errors (401)
    # ==========================================================================
    CALLER_ID_MISSING = "Caller identity header is missing."
    ADMIN_TOKEN_INVALID = "Invalid admin token."

    # ==========================================================================
    # Authorization Errors (403)
    # ==========================================================================
    SESSION_ACCESS_DENIED = "Not authorized to access this CAT session."

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    CAT_SESSION_NOT_FOUND = "CAT session not found."
    TEST_NOT_FOUND = "Test not found."
    QUESTION_NOT_FOUND = "Question not found."
    NO_QUESTIONS_AVAILABLE = (
        "Could not create test: No questions available matching criteria."
    )

    # ==========================================================================
    # Configuration Errors (500)
    # ==========================================================================
    ADMIN_TOKEN_NOT_CONFIGURED = "Admin token not configured on server."

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def session_already_completed(status: str) -> str:
        """Message for when trying to modify a non-in-progress session."""
        return (
            f"CAT session is already {status}. "
            "Only in-progress sessions can be modified."
        )

    @staticmethod
    def question_not_in_flight(
        question_id: int, expected_question_id: Optional[int]
    ) -> str:
        """Message for an answer submitted for a question not currently served."""
        if expected_question_id is None:
            return (
                f"Question {question_id} is not awaiting an answer. "
                "Request the next question first."
            )
        return (
            f"Question {question_id} is not awaiting an answer "
            f"(in-flight question ID: {expected_question_id})."
        )


# Domain exception -> HTTP status. Checked in MRO order so subclasses may
# override their parent's mapping.
CAT_ERROR_STATUS_CODES: Dict[Type[CATError], int] = {
    EmptyPoolError: status.HTTP_404_NOT_FOUND,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedSessionAccessError: status.HTTP_403_FORBIDDEN,
    OutOfSequenceError: status.HTTP_409_CONFLICT,
    SessionClosedError: status.HTTP_409_CONFLICT,
}


def status_code_for(exc: CATError) -> int:
    """Return the HTTP status code for a CAT domain exception."""
    for cls in type(exc).__mro__:
        if cls in CAT_ERROR_STATUS_CODES:
            return CAT_ERROR_STATUS_CODES[cls]
    return status.HTTP_400_BAD_REQUEST


def raise_unauthorized(detail: str) -> NoReturn:
    """Raise a 401 Unauthorized HTTPException."""
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def raise_not_configured(detail: str) -> NoReturn:
    """Raise a 500 error for missing server-side configuration."""
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
    )
