"""
Archive Sync Server - Authentication Utilities

This module provides identity token handling for the upload endpoint:
- Identity token issuing (for operators and tests)
- Identity token validation, including the audience check
- Authentication dependency for protected routes

Tokens are HS256 JWTs signed with the server's shared secret.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from archive_sync.server import settings as server_settings
from archive_sync.server.models.auth import TokenData

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)

# Security scheme for FastAPI
security = HTTPBearer(auto_error=False)


# ==================== Identity Token Functions ====================

def CreateIdentityToken(subject: str, audience: Optional[str] = None,
                        expires_delta: Optional[timedelta] = None,
                        secret_key: Optional[str] = None) -> str:
    """
    Create a signed identity token

    Args:
        subject: Caller identity (e.g. the sync client's id)
        audience: Audience the token is scoped to (e.g. "https://upload.example.org")
        expires_delta: Optional custom lifetime (default 1 hour)
        secret_key: Signing secret (defaults to the server's secret)

    Returns:
        str: Encoded JWT
    """
    now = datetime.now(timezone.utc)
    claims = {
        "sub": subject,
        "iat": now,
        "exp": now + (expires_delta or DEFAULT_TOKEN_LIFETIME),
    }
    if audience:
        claims["aud"] = audience

    key = secret_key or server_settings.GetSettings().auth_secret
    return jwt.encode(claims, key, algorithm=ALGORITHM)


def DecodeIdentityToken(token: str) -> TokenData:
    """
    Decode and validate an identity token

    Args:
        token: JWT token string

    Returns:
        TokenData: Validated token claims

    Raises:
        HTTPException: If the token is invalid, expired or has the wrong audience
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    current = server_settings.GetSettings()
    options = {"require_aud": True}
    if not current.audience:
        options = {"verify_aud": False}

    try:
        payload = jwt.decode(
            token,
            current.auth_secret,
            algorithms=[ALGORITHM],
            audience=current.audience,
            options=options,
        )
    except JWTError as e:
        logger.warning(f"Rejected identity token: {e}")
        raise credentials_exception

    subject = payload.get("sub")
    if not subject:
        raise credentials_exception

    return TokenData(subject=subject, audience=payload.get("aud"))


# ==================== Authentication Dependencies ====================

def GetCurrentCaller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> TokenData:
    """
    FastAPI dependency to get the authenticated caller

    Args:
        credentials: HTTP Bearer token from Authorization header

    Returns:
        TokenData: The caller's validated token data

    Raises:
        HTTPException: If authentication fails
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return DecodeIdentityToken(credentials.credentials)
