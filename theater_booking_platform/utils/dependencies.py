"""
FastAPI dependencies for the admin gate.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ..config import get_settings
from .auth import AdminTokenData, verify_admin_token
from .exceptions import AuthenticationError
from .logging_config import log_security_event

# Bearer header is optional; the browser sends the session cookie instead
security = HTTPBearer(auto_error=False)


async def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> AdminTokenData:
    """
    Require a valid admin session token.

    The token is read from the Bearer header first and the admin cookie
    second, and is verified on every call.

    Returns:
        The decoded admin token

    Raises:
        AuthenticationError: If the token is missing, invalid or expired
    """
    token = credentials.credentials if credentials else None
    if not token:
        token = request.cookies.get(get_settings().admin_cookie_name)

    if not token:
        raise AuthenticationError("Admin authentication required")

    token_data = verify_admin_token(token)
    if token_data is None:
        log_security_event(
            "invalid_admin_token",
            {"path": request.url.path, "client_ip": request.client.host if request.client else None}
        )
        raise AuthenticationError("Admin session is invalid or expired")

    return token_data
