"""
Security utilities for the blog

This module provides secure secret key handling, password hashing and the
security headers middleware.
"""

import logging
import os
import secrets
import string
from pathlib import Path

from pwdlib import PasswordHash
from pwdlib.exceptions import UnknownHashError
from pwdlib.hashers.argon2 import Argon2Hasher
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)

SECRET_KEY_FILENAME = ".secret_key"

INSECURE_DEFAULTS = [
    "your-secret-key-here-change-in-production",
    "something-very-secret",
    "change-me",
    "secret",
    "password",
    "123456",
    "admin",
]


def generate_secure_secret_key(length: int = 64) -> str:
    """
    Generate a cryptographically secure secret key.

    Args:
        length: Length of the secret key (default: 64 characters)

    Returns:
        A secure random string suitable for use as a SECRET_KEY
    """
    alphabet = string.ascii_letters + string.digits + "-_"
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def validate_secret_key(secret_key: str) -> None:
    """
    Validate that a secret key meets security requirements.

    Raises:
        ValueError: If the secret key doesn't meet requirements
    """
    if not secret_key:
        raise ValueError("SECRET_KEY cannot be empty")

    if len(secret_key) < 32:
        raise ValueError("SECRET_KEY must be at least 32 characters long")

    if secret_key.lower() in [default.lower() for default in INSECURE_DEFAULTS]:
        raise ValueError("SECRET_KEY appears to be an insecure default value")

    unique_chars = len(set(secret_key.lower()))
    if unique_chars < 8:
        raise ValueError("SECRET_KEY has insufficient entropy (too repetitive)")

    logger.debug("SECRET_KEY validation passed")


def get_or_create_secret_key(configured: str | None, data_dir: str) -> str:
    """
    Resolve the signing key.

    1. An explicitly configured key wins.
    2. Otherwise a key saved in ``<data_dir>/.secret_key`` is reused.
    3. Otherwise a new key is generated and saved with 0600 permissions.

    The key is validated before it is returned.
    """
    if configured:
        validate_secret_key(configured)
        return configured

    secret_file = Path(data_dir) / SECRET_KEY_FILENAME
    if secret_file.exists():
        secret_key = secret_file.read_text().strip()
        if secret_key:
            logger.info("Using SECRET_KEY from secret file")
            validate_secret_key(secret_key)
            return secret_key

    logger.warning("No SECRET_KEY configured, generating a new one")
    secret_key = generate_secure_secret_key()
    try:
        secret_file.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(secret_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(secret_key)
        logger.info("Generated new SECRET_KEY and saved to secure file")
    except OSError as e:
        logger.error(f"Could not save secret key to file: {e}")
        logger.warning("Using generated key in memory only (will regenerate on restart)")

    validate_secret_key(secret_key)
    return secret_key


class PasswordHasher:
    """
    Salted, deliberately slow one-way password hashing (Argon2id).

    Each ``hash`` call uses a fresh random salt, so hashing the same password
    twice yields different strings.
    """

    def __init__(self, time_cost: int = 3, memory_cost: int = 65536):
        self._context = PasswordHash(
            (Argon2Hasher(time_cost=time_cost, memory_cost=memory_cost),)
        )
        self._dummy_hash: str | None = None

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Return True if ``password`` matches. Never raises for a mismatch."""
        if not password_hash:
            return False
        try:
            return self._context.verify(password, password_hash)
        except (UnknownHashError, ValueError):
            logger.warning("Stored password hash has an unknown or corrupt format")
            return False

    def verify_dummy(self, password: str) -> bool:
        """Spend one verification on a throwaway hash. Always False."""
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(secrets.token_urlsafe(16))
        self._context.verify(password, self._dummy_hash)
        return False


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add security headers for XSS and other attack prevention.
    """

    SECURITY_HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Content-Security-Policy": (
            "default-src 'self'; "
            "img-src 'self' data:; "
            "style-src 'self' 'unsafe-inline'; "
            "form-action 'self'; "
            "frame-ancestors 'none'; "
            "base-uri 'self'"
        ),
    }

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header_name, header_value in self.SECURITY_HEADERS.items():
            response.headers.setdefault(header_name, header_value)
        return response
