"""
Authentication dependencies for route protection.
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mockapi.core.errors import AuthError
from mockapi.core.security import AuthGuard
from mockapi.dependencies.store import get_auth_guard

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_principal(
    auth_guard: Annotated[AuthGuard, Depends(get_auth_guard)],
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)] = None,
    token: Annotated[Optional[str], Query(description="JWT access token")] = None,
) -> Optional[str]:
    """
    Dependency resolving the authenticated principal id.

    Token is read from "Authorization: Bearer xxx", falling back to ?token=xxx.
    Resolves to None without looking at the request when auth is disabled.

    Raises:
        AuthError: If auth is enabled and the token is missing or invalid
    """
    if not auth_guard.enabled:
        return None

    raw = credentials.credentials if credentials is not None else token
    if not raw:
        logger.debug("Rejected request without token")
        raise AuthError("Authentication required")

    claims = auth_guard.verify(raw)
    principal = auth_guard.principal_id(claims)
    if principal is None:
        logger.debug("Rejected token without principal claim")
        raise AuthError("Token has no principal")
    return principal


# Type alias for cleaner route signatures
Principal = Annotated[Optional[str], Depends(get_current_principal)]
