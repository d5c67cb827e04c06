"""
FastAPI Dependencies

Reusable dependencies for push-queue request validation.
"""

import hmac
from fastapi import HTTPException, Query, status
from typing import Optional
from loguru import logger

from ironqueue.config import settings


async def validate_push_token(token: Optional[str] = Query(None)) -> None:
    """
    Dependency to validate the shared push token.

    IronMQ push subscribers are plain URLs, so the subscriber URL carries
    a ``?token=`` query parameter that must match IRON_PUSH_TOKEN.

    Args:
        token: Token query parameter

    Raises:
        HTTPException: 401 if the token is missing or wrong

    Note:
        Validation is skipped when IRON_PUSH_TOKEN is not set
    """
    if not settings.iron_push_token:
        logger.debug("Push token validation is disabled")
        return

    if not token:
        logger.warning("Missing push token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing push token"
        )

    if not hmac.compare_digest(token, settings.iron_push_token):
        logger.warning("Invalid push token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid push token"
        )
