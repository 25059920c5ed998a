"""Signed password-reset tokens.

The token carries its own expiry and a fingerprint of the password hash it
was issued against, so nothing is stored server-side and a token stops
working once the password has been changed.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..core.constants import DEFAULT_RESET_TOKEN_TTL_MINUTES
from ..core.exceptions import AuthenticationError

JWT_ALGO = "HS256"
RESET_PURPOSE = "password_reset"


def password_fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


class ResetTokenSigner:
    def __init__(self, secret: str, *, ttl_minutes: int = DEFAULT_RESET_TOKEN_TTL_MINUTES):
        self._secret = secret
        self._ttl = timedelta(minutes=int(ttl_minutes))

    def issue(self, teacher_id: str, password_hash: str, *, now: Optional[datetime] = None) -> str:
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(teacher_id),
            "purpose": RESET_PURPOSE,
            "pwd": password_fingerprint(password_hash),
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGO)

    def verify(self, token: str) -> dict:
        """Return the decoded claims or raise AuthenticationError."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[JWT_ALGO])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Reset link has expired") from None
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid or expired reset token") from None

        if payload.get("purpose") != RESET_PURPOSE or not payload.get("sub"):
            raise AuthenticationError("Invalid or expired reset token")
        return payload
