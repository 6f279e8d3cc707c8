"""
Authorization guards.

A guard is a FastAPI dependency that resolves an identity from the request,
re-checks it against the credential store on every request and returns the
``User``. Guards never cache users, so deleting a user revokes access at once,
without waiting for the session or token to expire.

Usage:
    @router.post("/new")
    def save(user: User = Depends(session_guard)): ...
"""

import logging
from abc import ABC, abstractmethod

from fastapi import Depends, Request

from blog.core.credentials import CredentialStore
from blog.core.deps import get_credential_store, get_session
from blog.core.errors import BlogError, InvalidToken, LoginRequired, NotFound, Unauthorized
from blog.core.logging_config import client_ip, log_security_event
from blog.db.models import User

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


class Guard(ABC):
    """Resolve a username, then confirm the user still exists."""

    event_type = "guard_rejected"

    @abstractmethod
    def resolve_username(self, request: Request) -> str:
        """Return the claimed username or raise the guard's rejection."""

    @abstractmethod
    def unknown_user_error(self) -> BlogError:
        """Error raised when the resolved user no longer exists."""

    def check_user(self, request: Request, user: User) -> None:
        """Hook for guard-specific checks on the resolved user."""

    def __call__(
        self,
        request: Request,
        credentials: CredentialStore = Depends(get_credential_store),
    ) -> User:
        username = self.resolve_username(request)
        try:
            user = credentials.find_by_username(username)
        except NotFound:
            log_security_event(
                self.event_type,
                "Access denied for unknown user",
                username=username,
                ip_address=client_ip(request),
            )
            raise self.unknown_user_error() from None

        self.check_user(request, user)
        request.state.user = user
        return user


class SessionGuard(Guard):
    """Web routes: anything but a live session user redirects home."""

    event_type = "session_rejected"

    def resolve_username(self, request: Request) -> str:
        session = get_session(request)
        if not session.is_authenticated:
            raise LoginRequired()
        return session.active_username

    def unknown_user_error(self) -> BlogError:
        return LoginRequired()

    def check_user(self, request: Request, user: User) -> None:
        # A re-registered username gets a new id; the old session must not carry over
        if user.id != get_session(request).active_user_id:
            log_security_event(
                self.event_type,
                "Session user id does not match the stored user",
                username=user.username,
                ip_address=client_ip(request),
            )
            raise LoginRequired()


class TokenGuard(Guard):
    """API routes: require ``Authorization: Bearer <token>``."""

    event_type = "token_rejected"

    def resolve_username(self, request: Request) -> str:
        token = self.extract_token(request.headers.get("Authorization", ""))
        token_service = request.app.state.token_service
        try:
            claims = token_service.parse(token)
        except InvalidToken:
            log_security_event(
                self.event_type,
                "Invalid bearer token",
                ip_address=client_ip(request),
            )
            raise InvalidToken("invalid token") from None
        return token_service.active_user(claims)

    @staticmethod
    def extract_token(header: str) -> str:
        parts = header.split(" ")
        if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME or not parts[1]:
            raise InvalidToken("invalid header")
        return parts[1]

    def unknown_user_error(self) -> BlogError:
        return Unauthorized()


session_guard = SessionGuard()
token_guard = TokenGuard()
