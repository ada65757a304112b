"""
Bearer-token authentication for SalesScope API endpoints.

Tokens are HS256 JWTs whose ``sub`` claim is the user id and whose
``organization_id`` claim scopes every dataset and analytics query.
Issuing tokens (login/registration) happens elsewhere; this module only
creates them for internal use and verifies them on each request.
"""

from datetime import datetime, timedelta
from typing import Optional
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel

from .config import get_settings
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """Token payload data."""

    user_id: str
    organization_id: str
    email: Optional[str] = None


class CurrentUser(BaseModel):
    """Authenticated caller, as seen by route handlers."""

    id: str
    organization_id: str
    email: Optional[str] = None


def create_access_token(
    user_id: str,
    organization_id: str,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a signed JWT access token."""
    settings = get_settings()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode = {
        "sub": user_id,
        "organization_id": organization_id,
        "email": email,
        "type": "access",
        "exp": expire,
        "iat": datetime.utcnow(),
    }
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> Optional[TokenData]:
    """
    Verify and decode a JWT access token.

    Returns:
        TokenData if valid, None otherwise
    """
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None

    if payload.get("type") != "access":
        logger.warning(f"Token type mismatch: expected access, got {payload.get('type')}")
        return None

    organization_id = payload.get("organization_id")
    if not organization_id:
        return None

    return TokenData(
        user_id=payload["sub"],
        organization_id=organization_id,
        email=payload.get("email"),
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """Resolve the current authenticated user from the bearer token."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    token_data = verify_token(credentials.credentials)
    if token_data is None:
        raise AuthenticationError("Could not validate credentials")

    return CurrentUser(
        id=token_data.user_id,
        organization_id=token_data.organization_id,
        email=token_data.email,
    )
