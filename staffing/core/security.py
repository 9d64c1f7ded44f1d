"""Bearer token signing and verification (HS256)."""

from datetime import timedelta

import jwt

from staffing.core.config import settings
from staffing.utils.clock import utcnow

ALGORITHM = "HS256"


def create_session_token(username: str, role: str, expires_hours: int | None = None) -> str:
    """Sign a token for `username` acting as `role` with the current secret."""
    issued_at = utcnow()
    lifetime = timedelta(hours=expires_hours or settings.JWT_EXPIRES_HOURS)
    payload = {"sub": username, "role": role, "iat": issued_at, "exp": issued_at + lifetime}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


def decode_session_token(token: str) -> dict:
    """
    Verify a token against the current secret, then the previous one.

    Raises:
        jwt.InvalidTokenError: no configured secret accepts the token
    """
    error: jwt.InvalidTokenError = jwt.InvalidSignatureError("No signing secret configured")
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(token, secret, algorithms=[ALGORITHM])
        except jwt.InvalidTokenError as e:
            error = e
    raise error
