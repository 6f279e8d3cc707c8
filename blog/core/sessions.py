"""
Cookie-backed sessions for the web UI.

The whole session state lives in the cookie, encrypted and authenticated with
Fernet. The Fernet key is derived from the session secret with PBKDF2, so the
cookie can be neither read nor forged without it. A cookie that fails
verification is treated as "no session", never as an error.
"""

import base64
import logging
from typing import Any, Dict, List, Mapping, Optional

import pydantic
from cryptography.fernet import Fernet, InvalidToken as FernetInvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from starlette.requests import Request
from starlette.responses import Response

from blog.core.errors import SessionError
from blog.core.logging_config import client_ip, log_security_event

logger = logging.getLogger(__name__)

MIN_KDF_ITERATIONS = 100_000
MAX_KDF_ITERATIONS = 1_000_000

# Browsers drop any cookie larger than this without reporting it
MAX_COOKIE_SIZE = 4096


class SessionState(BaseModel):
    """Typed per-user session state carried in the cookie."""

    model_config = ConfigDict(extra="ignore", strict=True)

    active_username: Optional[str] = None
    active_user_id: Optional[int] = None
    flashes: List[str] = Field(default_factory=list)
    forms: Dict[str, Dict[str, str]] = Field(default_factory=dict)

    _modified: bool = PrivateAttr(default=False)

    @property
    def modified(self) -> bool:
        return self._modified

    @property
    def is_authenticated(self) -> bool:
        return bool(self.active_username) and self.active_user_id is not None

    def add_flash(self, message: str) -> None:
        self.flashes.append(message)
        self._modified = True

    def consume_flashes(self) -> List[str]:
        """Return the pending flash messages and clear them."""
        flashes = list(self.flashes)
        if flashes:
            self.flashes.clear()
            self._modified = True
        return flashes

    def set_active_user(self, username: str, user_id: int) -> None:
        self.active_username = username
        self.active_user_id = user_id
        self._modified = True

    def clear_active_user(self) -> None:
        self.active_username = None
        self.active_user_id = None
        self._modified = True

    def stash_form(self, name: str, values: Mapping[str, Any]) -> None:
        """Keep submitted form values for the next render of that form."""
        self.forms[name] = {key: str(value) for key, value in values.items()}
        self._modified = True

    def pop_form(self, name: str) -> Optional[Dict[str, str]]:
        values = self.forms.pop(name, None)
        if values is not None:
            self._modified = True
        return values


def _clamp_iterations(iterations: int) -> int:
    if iterations > MAX_KDF_ITERATIONS:
        logger.warning(f"KDF iterations {iterations} exceeds maximum, using {MAX_KDF_ITERATIONS}")
        return MAX_KDF_ITERATIONS
    if iterations < MIN_KDF_ITERATIONS:
        logger.warning(f"KDF iterations {iterations} below recommended minimum, using {MIN_KDF_ITERATIONS}")
        return MIN_KDF_ITERATIONS
    return iterations


def derive_cipher(secret_key: str, salt: bytes, iterations: int) -> Fernet:
    """Create a Fernet cipher from a password-like secret."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=_clamp_iterations(iterations),
    )
    key = base64.urlsafe_b64encode(kdf.derive(secret_key.encode('utf-8')))
    return Fernet(key)


class SessionManager:
    """Loads and saves :class:`SessionState` through an encrypted cookie."""

    def __init__(
        self,
        secret_key: str,
        cookie_name: str = "blog",
        max_age: Optional[int] = 30 * 24 * 3600,
        https_only: bool = False,
        same_site: str = "lax",
        salt: bytes = b"blog-session-cookie-v1",
        kdf_iterations: int = 300_000,
    ):
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.https_only = https_only
        self.same_site = same_site
        self._cipher = derive_cipher(secret_key, salt, kdf_iterations)

    def load(self, request: Request) -> SessionState:
        """
        Read the session from the request cookie.

        Returns a fresh empty session if the cookie is absent, fails the
        integrity check, or no longer matches the session schema.
        """
        raw = request.cookies.get(self.cookie_name)
        if not raw:
            return SessionState()

        try:
            payload = self._cipher.decrypt(raw.encode('utf-8'))
        except FernetInvalidToken:
            log_security_event(
                "session_rejected",
                "Session cookie failed integrity check, starting a new session",
                ip_address=client_ip(request),
            )
            return SessionState()

        try:
            return SessionState.model_validate_json(payload)
        except pydantic.ValidationError as e:
            logger.warning(
                "Corrupt session payload, starting a new session",
                extra={"error_count": e.error_count()},
            )
            return SessionState()

    def save(self, session: SessionState, response: Response) -> None:
        """
        Write the session cookie onto ``response``.

        Raises:
            SessionError: If the session cannot be encoded or the cookie
                would be larger than ``MAX_COOKIE_SIZE``
        """
        try:
            payload = session.model_dump_json().encode('utf-8')
            value = self._cipher.encrypt(payload).decode('utf-8')
        except (TypeError, ValueError) as e:
            logger.error("Failed to encode session", extra={"error_type": type(e).__name__})
            raise SessionError(f"session encoding failed: {e}") from e

        size = len(self.cookie_name) + len(value)
        if size > MAX_COOKIE_SIZE:
            logger.error(
                "Session cookie too large",
                extra={"cookie_size": size, "max_size": MAX_COOKIE_SIZE},
            )
            raise SessionError(f"session cookie of {size} bytes exceeds {MAX_COOKIE_SIZE}")

        response.set_cookie(
            self.cookie_name,
            value,
            max_age=self.max_age,
            path="/",
            secure=self.https_only,
            httponly=True,
            samesite=self.same_site,
        )
