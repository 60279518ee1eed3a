"""
Security utilities for JWT token management and record ownership.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from mockapi.config import Settings
from mockapi.core.errors import AuthError


class AuthGuard:
    """Issues and verifies bearer tokens for the mock API."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: Optional[int] = None,
        enabled: bool = False,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthGuard":
        return cls(
            secret_key=settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            expire_minutes=settings.jwt_access_token_expire_minutes,
            enabled=settings.auth_enabled,
        )

    def generate_token(
        self,
        claims: dict[str, Any],
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """
        Create a signed JWT embedding the given claims.

        Args:
            claims: Arbitrary claims, usually including a principal id ("sub" or "id")
            expires_delta: Optional lifetime overriding the configured one

        Returns:
            Encoded JWT token string
        """
        now = datetime.now(timezone.utc)
        payload = dict(claims)
        if "sub" in payload and not isinstance(payload["sub"], str):
            payload["sub"] = str(payload["sub"])
        payload["iat"] = now

        if expires_delta is None and self.expire_minutes is not None:
            expires_delta = timedelta(minutes=self.expire_minutes)
        if expires_delta is not None:
            payload["exp"] = now + expires_delta

        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """
        Decode and validate a JWT token.

        Raises:
            AuthError: If token is malformed, badly signed or expired
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthError("Token has expired")
        except JWTError:
            raise AuthError("Invalid token")

    @staticmethod
    def principal_id(claims: dict[str, Any]) -> Optional[str]:
        """Identifier of the authenticated principal: "sub", falling back to "id"."""
        principal = claims.get("sub", claims.get("id"))
        return None if principal is None else str(principal)


def can_modify(
    principal_id: Optional[str],
    record: dict[str, Any],
    auth_enabled: bool,
) -> bool:
    """
    Ownership rule for update/delete.

    With auth disabled everything is allowed. Otherwise only the principal
    recorded in createdBy may modify the record.
    """
    if not auth_enabled:
        return True
    owner = record.get("createdBy")
    if owner is None or principal_id is None:
        return False
    return str(owner) == str(principal_id)
