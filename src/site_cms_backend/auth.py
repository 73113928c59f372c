"""
Admin authentication.

A single admin account is configured through the environment. Logging in
with its username and password yields an HS256-signed bearer token valid for
24 hours; protected routes verify that token statelessly on every request.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Header, Request
from jose import ExpiredSignatureError, JWTError, jwt

from .configuration import TOKEN_TTL_HOURS, Settings, get_settings
from .errors import AuthenticationError, CmsError, MissingCredentialError, ValidationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"


def _require_secret(settings: Settings) -> str:
    if not settings.jwt_secret:
        raise CmsError("JWT_SECRET is not configured")
    return settings.jwt_secret


def issue_token(username: str, settings: Settings, issued_at: Optional[datetime] = None) -> str:
    issued_at = issued_at or datetime.now(timezone.utc)
    claims = {
        "role": ADMIN_ROLE,
        "username": username,
        "timestamp": int(issued_at.timestamp() * 1000),
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=TOKEN_TTL_HOURS),
    }
    return jwt.encode(claims, _require_secret(settings), algorithm=ALGORITHM)


def check_credentials(username: Optional[str], password: Optional[str], settings: Settings) -> str:
    """
    Validate admin credentials and issue a token.

    Args:
        username: Submitted username
        password: Submitted password
        settings: Runtime settings holding the admin secrets

    Returns:
        A signed bearer token

    Raises:
        ValidationError: If either field is missing or empty
        AuthenticationError: If the pair does not match the configured admin
    """
    if not username or not password:
        raise ValidationError("Username and password are required")

    matches = (
        settings.admin_username is not None
        and settings.admin_password is not None
        and username == settings.admin_username
        and password == settings.admin_password
    )
    if not matches:
        logger.error("Login rejected: wrong username or password")
        raise AuthenticationError("Invalid username or password")

    token = issue_token(username, settings)
    logger.info(f"Token issued for {username}: {token[:20]}...")
    return token


def verify_token(token: Optional[str], settings: Settings) -> Dict[str, Any]:
    """
    Decode a bearer token and return its claims.

    Raises:
        MissingCredentialError: If no token was supplied
        AuthenticationError: With status 403 if the signature is invalid,
            the token is malformed or it has expired
    """
    if not token:
        raise MissingCredentialError("Token required")
    try:
        return jwt.decode(token, _require_secret(settings), algorithms=[ALGORITHM])
    except ExpiredSignatureError as exc:
        logger.error(f"Token expired: {exc}")
        raise AuthenticationError("Invalid or expired token", status_code=403) from exc
    except JWTError as exc:
        logger.error(f"Token verification failed: {exc}")
        raise AuthenticationError("Invalid or expired token", status_code=403) from exc


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def require_admin(
    request: Request,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    claims = verify_token(extract_bearer(authorization), settings)
    request.state.user = claims
    return claims
