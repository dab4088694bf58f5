"""Admin API key check for on-demand digest generation"""

from __future__ import annotations

import os
import secrets

from fastapi import Header, HTTPException, status

from newsdigest.api.middleware.user_auth import extract_bearer_token
from newsdigest.observability.logging import get_logger
from newsdigest.observability.telemetry import counter

logger = get_logger(__name__)


class APIKeyAuth:
    """
    Shared-secret check for trusted callers.

    The key is read from the environment on every check, so rotating
    NEWSDIGEST_ADMIN_API_KEY needs no code change. With no key configured the
    endpoint is open, which is only acceptable in development.
    """

    def __init__(self, env_var: str = "NEWSDIGEST_ADMIN_API_KEY"):
        self.env_var = env_var
        self._warned_open = False

    @property
    def api_key(self) -> str | None:
        return os.getenv(self.env_var) or None

    def verify_api_key(self, authorization: str | None = Header(None)) -> bool:
        """Accept ``Authorization: Bearer <key>``; 401 if absent/malformed, 403 if wrong."""
        expected = self.api_key
        if expected is None:
            if not self._warned_open:
                logger.warning("%s not set - digest generation is unprotected!", self.env_var)
                self._warned_open = True
            return True

        token = extract_bearer_token(authorization)

        if not secrets.compare_digest(token.encode(), expected.encode()):
            counter("auth.admin_rejected")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid API key",
            )

        return True


# Global auth instance
auth = APIKeyAuth()


def require_admin_auth(authorization: str | None = Header(None)) -> bool:
    """
    Dependency for endpoints restricted to trusted callers.

    Usage:
        @router.post("/api/digest/generate")
        async def generate(_authenticated: bool = Depends(require_admin_auth)):
            ...
    """
    return auth.verify_api_key(authorization)
