"""
Credential store: user records and password verification.
"""

import logging
from typing import Optional

from blog.core.errors import AuthenticationFailed, NotFound, ValidationError
from blog.core.security import PasswordHasher
from blog.db.models import User
from blog.db.repository import Repository

logger = logging.getLogger(__name__)


class CredentialStore:
    """
    Owns user records and password checks.

    Plaintext passwords are hashed before anything is written and are never
    stored or logged.
    """

    def __init__(self, repository: Repository, hasher: PasswordHasher):
        self.repository = repository
        self.hasher = hasher

    def hash_password(self, password: str) -> str:
        return self.hasher.hash(password)

    def verify_password(self, user: User, password: str) -> bool:
        return self.hasher.verify(password, user.password_hash)

    def find_by_username(self, username: str) -> User:
        """
        Raises:
            NotFound: If no user has this username
        """
        return self.repository.get_user_by_username(username)

    def upsert(self, user: User, password: Optional[str] = None) -> User:
        """
        Save ``user`` keyed by username.

        Args:
            user: The user record to write
            password: Optional new plaintext password. When omitted the stored
                hash is kept.

        Returns:
            The persisted user, including its store-assigned id

        Raises:
            ValidationError: Empty username, or a new user without a password
            StoreError: If the write fails
        """
        user.validate()
        if not user.display_name:
            user.display_name = user.username

        if password:
            user.password_hash = self.hash_password(password)
        elif not user.password_hash:
            try:
                existing = self.repository.get_user_by_username(user.username)
            except NotFound:
                raise ValidationError("Password", "empty") from None
            user.password_hash = existing.password_hash

        saved = self.repository.save_user(user)
        logger.info("Saved user", extra={"user_id": saved.id, "username": saved.username})
        return saved

    def authenticate(self, username: str, password: str) -> User:
        """
        Check a username/password pair.

        Raises:
            AuthenticationFailed: For an unknown user or a wrong password
            StoreError: If the lookup fails
        """
        try:
            user = self.find_by_username(username)
        except NotFound:
            # Spend the same hashing time as a real check
            self.hasher.verify_dummy(password)
            raise AuthenticationFailed() from None

        if not self.verify_password(user, password):
            raise AuthenticationFailed()
        return user
