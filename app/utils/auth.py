"""
Authentication utilities - static shared-secret bearer check
"""
import hmac
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.utils.errors import AuthError

# auto_error=False so a missing header is answered with our own {"error"} body
security = HTTPBearer(auto_error=False)


def verify_admin_token(token: Optional[str], expected: str) -> bool:
    """Exact, constant-time match; an unset secret never matches"""
    if not token or not expected:
        return False
    return hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


async def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """Dependency guarding the admin listing"""
    settings = request.app.state.settings
    # HTTPBearer accepts any casing of the scheme, the header must read "Bearer <token>"
    token = credentials.credentials if credentials and credentials.scheme == "Bearer" else None
    if not verify_admin_token(token, settings.ADMIN_PASSWORD):
        raise AuthError("Unauthorized")
