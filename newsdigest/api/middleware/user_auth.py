"""
User authentication for NewsDigest API.

Bearer tokens are issued by an external OIDC identity provider; we never
validate them ourselves. Each token is exchanged for the caller's profile at
the provider's ``/userinfo`` endpoint and the result is cached briefly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import httpx
from cachetools import TTLCache
from fastapi import HTTPException, Request, status

from newsdigest.observability.logging import get_logger
from newsdigest.utils.redaction import redact

logger = get_logger(__name__)

# Cache configuration - short TTL so revoked tokens stop working quickly
_CACHE_MAX_SIZE = 1000
_CACHE_TTL_SECONDS = 600
_USERINFO_TIMEOUT_SECONDS = 10.0


@dataclass
class AuthenticatedUser:
    """Caller identity as reported by the identity provider."""

    id: str  # OIDC subject
    email: str = ""
    name: str | None = None

    def __str__(self) -> str:
        return f"User({self.id})"


_token_cache: TTLCache[str, AuthenticatedUser] = TTLCache(
    maxsize=_CACHE_MAX_SIZE, ttl=_CACHE_TTL_SECONDS
)


def _userinfo_url() -> str:
    issuer = os.getenv("AUTH_ISSUER_URL", "").rstrip("/")
    if not issuer:
        logger.error("AUTH_ISSUER_URL not configured - cannot verify bearer tokens")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        )
    return f"{issuer}/userinfo"


async def verify_token(token: str) -> AuthenticatedUser:
    """
    Resolve a bearer token to the caller's identity.

    Raises:
        HTTPException: 401 if the provider rejects the token,
            503 if the provider cannot be reached or is not configured
    """
    if token in _token_cache:
        return _token_cache[token]

    url = _userinfo_url()

    async with httpx.AsyncClient() as client:
        try:
            response = await client.get(
                url,
                headers={"Authorization": f"Bearer {token}"},
                timeout=_USERINFO_TIMEOUT_SECONDS,
            )
        except httpx.TimeoutException:
            logger.warning("Token validation timed out")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Authentication service unavailable",
            ) from None
        except httpx.RequestError as e:
            logger.error("Token validation request failed: %s", e)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Authentication service unavailable",
            ) from e

    if response.status_code != 200:
        logger.warning("Identity provider rejected token (status %s)", response.status_code)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        userinfo = response.json()
        subject = userinfo["sub"]
    except (ValueError, KeyError, TypeError):
        logger.warning("Identity provider returned a profile without a subject")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    user = AuthenticatedUser(
        id=subject,
        email=userinfo.get("email", ""),
        name=userinfo.get("name"),
    )
    _token_cache[token] = user

    logger.info("Authenticated user %s (cache size: %d)", redact(user.id), len(_token_cache))
    return user


def extract_bearer_token(authorization: str | None) -> str:
    """Extract token from Authorization header."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return parts[1]


async def get_current_user(request: Request) -> AuthenticatedUser:
    """
    FastAPI dependency for endpoints that require a signed-in caller.

    Usage:
        @router.get("/endpoint")
        async def endpoint(user: AuthenticatedUser = Depends(get_current_user)):
            ...
    """
    token = extract_bearer_token(request.headers.get("Authorization"))
    return await verify_token(token)


async def get_optional_user(request: Request) -> AuthenticatedUser | None:
    """
    FastAPI dependency for optional authentication.

    No Authorization header means anonymous (None). A header that is present
    but invalid is still rejected with 401 rather than silently downgraded.
    """
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None

    token = extract_bearer_token(authorization)
    return await verify_token(token)


def clear_token_cache() -> None:
    """Clear the token cache. Useful for testing."""
    _token_cache.clear()
