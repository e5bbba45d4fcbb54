"""
User identification for the FeedQ API.

The gateway in front of the service authenticates the caller and forwards
the user id in the X-User-Id header. Requests without it are anonymous.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from feedq.config import API_USER_HEADER
from feedq.observability.logging import get_logger

logger = get_logger(__name__)

_USER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.@-]{1,64}$")


@dataclass
class AuthenticatedUser:
    """The user the request acts as."""

    id: str

    def __str__(self) -> str:
        return f"User({self.id})"


def get_current_user(request: Request) -> AuthenticatedUser | None:
    """
    FastAPI dependency: the acting user, or None for anonymous requests.

    Raises:
        HTTPException: 400 if the header is present but malformed
    """
    raw = request.headers.get(API_USER_HEADER, "").strip()
    if not raw:
        return None

    if not _USER_ID_PATTERN.match(raw):
        logger.warning("Rejected malformed %s header", API_USER_HEADER)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {API_USER_HEADER} header",
        )

    return AuthenticatedUser(id=raw)
