"""
API Authentication for the Life OS signal API.

Single shared token read from the LIFEOS_API_TOKEN env var.

Token extraction order:
1. Authorization: Bearer <token> header
2. X-API-Token header
3. api_token query parameter (for testing)

Usage:
    from api.auth import require_auth

    @router.post("/protected", dependencies=[Depends(require_auth)])
    def protected_endpoint(): ...
"""

import logging
import os
import secrets

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

TOKEN_ENV = "LIFEOS_API_TOKEN"

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)


def _get_token_from_env() -> str | None:
    """Get the expected token from environment."""
    return os.environ.get(TOKEN_ENV)


def _get_token_from_request(request: Request) -> str | None:
    """
    Extract token from request.

    Checks in order:
    1. Authorization: Bearer <token> header
    2. X-API-Token header (alternative)
    3. api_token query parameter (for testing/debugging)
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]  # Strip "Bearer "

    x_token = request.headers.get("X-API-Token")
    if x_token:
        return x_token

    query_token = request.query_params.get("api_token")
    if query_token:
        return query_token

    return None


async def require_auth(
    request: Request, credentials: HTTPAuthorizationCredentials | None = Depends(security)
) -> str:
    """
    Dependency that requires valid authentication.

    Returns the validated token on success.
    Raises HTTPException 401 on failure.

    If LIFEOS_API_TOKEN is not configured, WARNS but allows (development mode).
    """
    expected_token = _get_token_from_env()
    if not expected_token:
        logger.warning(f"{TOKEN_ENV} not set - authentication disabled! Set it in production.")
        return "auth_disabled"

    provided_token = _get_token_from_request(request)
    if not provided_token:
        logger.warning(f"Auth failed: no token provided for {request.url.path}")
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Provide Bearer token in Authorization header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Constant-time comparison
    if not secrets.compare_digest(provided_token, expected_token):
        logger.warning(f"Auth failed: invalid token for {request.url.path}")
        raise HTTPException(
            status_code=401,
            detail="Invalid authentication token.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Auth succeeded for {request.url.path}")
    return provided_token
