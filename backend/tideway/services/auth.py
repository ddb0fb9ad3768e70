"""Authentication context.

Tokens are issued by the account service; this side only verifies them
and reads the user id from the subject claim. ``create_token`` exists for
tooling and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from tideway.config import settings


class AuthService:
    """JWT verification."""

    def create_token(self, user_id: str) -> str:
        """Create a JWT token for a user."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "exp": now + timedelta(hours=settings.jwt_expiry_hours),
            "iat": now,
        }
        return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    def decode_token(self, token: str) -> Optional[str]:
        """Decode a JWT token and return the user id, or None if invalid."""
        try:
            payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
        except JWTError:
            return None
        user_id = payload.get("sub")
        return str(user_id) if user_id else None
