"""
Bearer tokens for the JSON API.

Tokens are compact HS256 JWS strings carrying a fixed issuer, an expiry and an
open ``data`` mapping. There is no server-side revocation: a token stays valid
until it expires or the signing key changes.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping

import jwt

from blog.core.errors import InvalidToken

logger = logging.getLogger(__name__)

ACTIVE_USER_CLAIM = "activeUser"


class TokenService:
    """Issues and validates signed, time-bound bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(days=30),
    ):
        if not algorithm.startswith("HS"):
            raise ValueError(f"Only HMAC signing algorithms are supported, got {algorithm}")
        self._secret_key = secret_key
        self.issuer = issuer
        self.algorithm = algorithm
        self.lifetime = lifetime

    def issue(self, data: Mapping[str, Any], expires_at: int) -> str:
        """
        Sign ``data`` into a self-contained token.

        Args:
            data: Claims data embedded under the ``data`` claim
            expires_at: Expiry as a unix timestamp

        Returns:
            The encoded token string
        """
        claims = {
            "data": dict(data),
            "iss": self.issuer,
            "exp": int(expires_at),
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def parse(self, token: str) -> Dict[str, Any]:
        """
        Verify a token and return its claims data.

        Only the configured HMAC algorithm is accepted, so tokens asserting
        ``none`` or another algorithm are rejected before the signature check.

        Raises:
            InvalidToken: For any failure. No claims are returned on failure.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iss"]},
            )
        except jwt.InvalidTokenError as e:
            logger.debug("Token rejected", extra={"reason": type(e).__name__})
            raise InvalidToken() from None

        data = claims.get("data")
        if not isinstance(data, dict):
            raise InvalidToken()
        return data

    def issue_for_user(self, username: str) -> str:
        expires_at = datetime.now(timezone.utc) + self.lifetime
        return self.issue({ACTIVE_USER_CLAIM: username}, int(expires_at.timestamp()))

    @staticmethod
    def active_user(data: Mapping[str, Any]) -> str:
        """Read the active username from claims data, type-checked."""
        username = data.get(ACTIVE_USER_CLAIM)
        if not isinstance(username, str) or not username:
            raise InvalidToken("invalid value")
        return username
