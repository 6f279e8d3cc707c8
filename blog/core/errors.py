"""Domain errors raised by the credential store, session and token layers."""


class BlogError(Exception):
    """Base class for all blog errors."""

    default_message = "blog error"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(BlogError):
    """An input attribute violated a domain rule."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class NotFound(BlogError):
    default_message = "not found"


class AuthenticationFailed(BlogError):
    """Bad credentials. The message never says whether the username exists."""

    default_message = "login failed"

    def __init__(self):
        super().__init__()


class InvalidToken(BlogError):
    """Bad, expired or forged bearer token, or a malformed Authorization header."""

    default_message = "invalid token"


class Unauthorized(BlogError):
    """A valid token names a user that no longer exists."""

    default_message = "unauthorized"


class LoginRequired(BlogError):
    """The web session has no usable active user."""

    default_message = "login required"


class StoreError(BlogError):
    """Opaque persistence failure."""

    default_message = "database error"


class SessionError(BlogError):
    """The session cookie could not be encoded."""

    default_message = "session error"
