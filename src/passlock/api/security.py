# API Security - session token for the local vault API
#
# A random token is generated when the app starts; every vault endpoint
# requires it in the X-Session-Token header. This keeps other local
# processes (and browser pages) from driving the unlocked vault.

import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request, status


def generate_session_token() -> str:
    """Random 256-bit URL-safe token."""
    return secrets.token_urlsafe(32)


async def verify_session_token(
    request: Request,
    x_session_token: Optional[str] = Header(None),
) -> str:
    """
    FastAPI dependency to verify the session token.

    Raises:
        HTTPException: 503 if no token is configured, 401 if missing/invalid
    """
    expected = getattr(request.app.state, "session_token", None)
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session token not initialized"
        )

    if x_session_token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing session token. Include X-Session-Token header."
        )

    # Constant-time comparison
    if not secrets.compare_digest(x_session_token, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token"
        )

    return x_session_token
