"""
Access token verification for portal users.

WHY: Residents sign in through the portal's hosted auth provider, which
issues HS256 JWTs. This service never issues credentials for real users;
it only turns a bearer token into a verified identity:
1. Signature and expiry are checked with the shared JWT secret
2. The audience must match the portal's authenticated audience
3. The `sub` claim becomes the user id, the `email` claim the email

create_access_token() mints tokens with the same claim layout and is used
by local tooling and the test-suite.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError, ExpiredSignatureError

from app.core.config import settings
from app.core.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
)


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """
    The caller behind a verified bearer token.

    `email` may be missing for phone-only accounts; payment operations
    reject such identities.
    """

    user_id: str
    email: Optional[str] = None


# ============================================================================
# JWT Token Management
# ============================================================================


def create_access_token(
    user_id: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a portal access token.

    Token includes:
    - sub: User id
    - email: User email (omitted when None)
    - aud: Configured audience
    - exp / iat: Expiration and issue time

    Args:
        user_id: User id to put in the `sub` claim
        email: Optional email claim
        expires_delta: Optional custom expiration time

    Returns:
        JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES))

    to_encode: Dict[str, Any] = {
        "sub": str(user_id),
        "role": "authenticated",
        "exp": expire,
        "iat": now,
    }
    if email:
        to_encode["email"] = email
    if settings.JWT_AUDIENCE:
        to_encode["aud"] = settings.JWT_AUDIENCE

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a portal access token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is malformed, signature or audience invalid
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options={"verify_aud": settings.JWT_AUDIENCE is not None},
        )

    except ExpiredSignatureError:
        raise TokenExpiredError(message="Token has expired")

    except JWTError as e:
        raise TokenInvalidError(
            message="Invalid token",
            error=str(e),
        )


class JWTAuthenticator:
    """
    Authentication capability backed by local JWT verification.

    WHAT: Resolves a bearer token to an AuthenticatedIdentity.

    WHY: Verifying the signature locally avoids a network round-trip to
    the auth provider on every payment call while giving the same
    guarantees (the provider signs with the shared secret).
    """

    async def verify(self, token: str) -> AuthenticatedIdentity:
        """
        Verify a bearer token.

        Raises:
            TokenExpiredError: If token has expired
            TokenInvalidError: If token is invalid or has no subject
        """
        payload = verify_token(token)

        user_id = payload.get("sub")
        if not user_id:
            raise TokenInvalidError(message="Invalid token: missing subject")

        return AuthenticatedIdentity(user_id=str(user_id), email=payload.get("email"))


_authenticator: Optional[JWTAuthenticator] = None


def get_authenticator() -> JWTAuthenticator:
    """Get or create the global authenticator instance."""
    global _authenticator

    if _authenticator is None:
        _authenticator = JWTAuthenticator()

    return _authenticator
