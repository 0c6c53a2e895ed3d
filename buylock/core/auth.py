# buylock/core/auth.py
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError

from buylock.core.config import get_settings

settings = get_settings()

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise immediately
#   so we can support "guest" mode (unauthenticated).
bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a customer access token (JWT).

    Verification:
      - signature (HS256 using JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified

    Raises:
        HTTPException(401): if token is invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALG],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
        )


def get_current_claims(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any] | None:
    """
    Resolve the caller's token claims.

    Returns:
        Decoded claims if a bearer token is present, else None for guests.

    Raises:
        HTTPException(401): if the token is invalid or has no 'sub'.
    """
    if credentials is None:
        return None  # guest mode

    payload = decode_access_token(credentials.credentials)
    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing sub",
        )
    return payload


def require_guest(claims: dict[str, Any] | None = Depends(get_current_claims)) -> None:
    """
    Enforce that the caller is NOT logged in.

    Use this for guest-cart endpoints: logged-in customers use the
    server-side cart, the two are never merged.

    Raises:
        HTTPException(403): if a valid bearer token was sent.
    """
    if claims is not None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Guest cart is only available to guests",
        )
