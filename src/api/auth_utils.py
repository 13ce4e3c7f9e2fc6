"""
Bearer token helpers.

Tokens are HS256 JWTs whose subject is the user id. Issuing them is left
to the CLI (`newsdesk issue-token`); the API only verifies.
"""

import os
from datetime import UTC, datetime, timedelta
from typing import Any, cast
from uuid import UUID

from jose import jwt

SECRET_KEY = os.environ.get("NEWSDESK_SECRET_KEY", "dev-secret-unsafe")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours


def create_user_token(
    user_id: UUID,
    expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES,
    now_utc: datetime | None = None,
) -> str:
    """
    Sign a token for one user.

    Args:
        user_id: Becomes the `sub` claim
        expires_minutes: Lifetime from now_utc
        now_utc: Issue time (for testing/determinism). Defaults to datetime.now(UTC).
    """
    issued_at = now_utc if now_utc is not None else datetime.now(UTC)
    claims = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=expires_minutes),
    }
    return cast(str, jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM))


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Verified claims, or None for a bad signature, malformed or expired token."""
    try:
        return cast(dict[str, Any], jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM]))
    except jwt.JWTError:
        return None


def token_user_id(token: str) -> UUID | None:
    payload = decode_access_token(token)
    if not payload:
        return None

    subject = payload.get("sub")
    if not isinstance(subject, str):
        return None
    try:
        return UUID(subject)
    except ValueError:
        return None
