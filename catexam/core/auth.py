"""
Caller identity and admin token dependencies.

End users are authenticated upstream; the gateway forwards the user's id in
the ``X-User-Id`` header. Maintenance endpoints require the shared
``X-Admin-Token`` secret.
"""
import logging
import secrets
from typing import Optional

from fastapi import Header

from catexam.core.config import settings
from catexam.core.error_responses import (
    ErrorMessages,
    raise_not_configured,
    raise_unauthorized,
)

logger = logging.getLogger(__name__)


def get_caller_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Return the caller's user id from the X-User-Id header.

    Raises:
        HTTPException: 401 if the header is missing or blank.
    """
    caller_id = (x_user_id or "").strip()
    if not caller_id:
        raise_unauthorized(ErrorMessages.CALLER_ID_MISSING)
    return caller_id


def verify_admin_token(x_admin_token: str = Header(...)) -> bool:
    """
    Verify the admin token from the X-Admin-Token header.

    Uses constant-time comparison.

    Raises:
        HTTPException: 500 if no admin token is configured, 401 if invalid.
    """
    if not settings.ADMIN_TOKEN:
        raise_not_configured(ErrorMessages.ADMIN_TOKEN_NOT_CONFIGURED)

    if not secrets.compare_digest(x_admin_token, settings.ADMIN_TOKEN):
        logger.warning("Rejected admin request with invalid token")
        raise_unauthorized(ErrorMessages.ADMIN_TOKEN_INVALID)

    return True
