"""FastAPI authentication dependency.

Identity is established upstream; the authenticated user id arrives in the
X-User-Id header.
"""

from __future__ import annotations

from fastapi import Header, HTTPException, Request, status
from loguru import logger


def get_current_user_id(request: Request, x_user_id: str | None = Header(default=None)) -> str:
    """FastAPI dependency returning the authenticated user id.

    Raises:
        HTTPException: 401 if the user id header is missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        logger.warning(f"Auth failed: missing X-User-Id header, Path: {request.url.path}, Method: {request.method}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return x_user_id.strip()
