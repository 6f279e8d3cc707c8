"""Post and user persistence.

Both entities use upsert semantics keyed by their natural key (slug, username).
Every persistence failure is rolled back and surfaced as an opaque
``StoreError``; the driver detail goes to the log only. There are no retries.
"""
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blog.core.errors import NotFound, StoreError
from blog.db.models import Post, User

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Repository:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, error: SQLAlchemyError) -> StoreError:
        self.db.rollback()
        logger.error(f"Database operation failed: {action}", extra={
            "error_type": type(error).__name__,
            "error": str(error),
        })
        return StoreError()

    def _commit(self, action: str, target=None) -> None:
        """Commit, then reload ``target`` so its generated columns are current."""
        try:
            self.db.commit()
            if target is not None:
                self.db.refresh(target)
        except SQLAlchemyError as e:
            raise self._fail(action, e) from e

    def save_post(self, post: Post) -> Post:
        """
        Insert or overwrite a post by slug.

        ``created_at`` is set on first save and kept on later saves;
        ``modified_at`` is refreshed every time.
        """
        action = f"save post {post.slug!r}"
        now = utcnow()
        try:
            existing = self.db.get(Post, post.slug)
            if existing is None:
                post.created_at = post.created_at or now
                post.modified_at = now
                self.db.add(post)
                target = post
            else:
                existing.user_id = post.user_id
                existing.title = post.title
                existing.body = post.body
                if existing.created_at is None:
                    existing.created_at = post.created_at or now
                existing.modified_at = now
                target = existing
        except SQLAlchemyError as e:
            raise self._fail(action, e) from e

        self._commit(action, target)
        return target

    def get_post_by_slug(self, slug: str) -> Post:
        try:
            post = self.db.get(Post, slug)
        except SQLAlchemyError as e:
            raise self._fail(f"get post {slug!r}", e) from e
        if post is None:
            raise NotFound("post not found")
        return post

    def get_all_posts(self) -> List[Post]:
        """All posts, newest first. An empty store is an empty list."""
        statement = select(Post).order_by(Post.created_at.desc(), Post.slug)
        try:
            return list(self.db.scalars(statement).unique())
        except SQLAlchemyError as e:
            raise self._fail("list posts", e) from e

    def save_user(self, user: User) -> User:
        """Insert or update a user by username, keeping the existing id."""
        action = f"save user {user.username!r}"
        try:
            existing = self.db.scalar(select(User).where(User.username == user.username))
            if existing is None:
                self.db.add(user)
                target = user
            else:
                existing.display_name = user.display_name
                existing.password_hash = user.password_hash
                target = existing
        except SQLAlchemyError as e:
            raise self._fail(action, e) from e

        self._commit(action, target)
        return target

    def get_user_by_username(self, username: str) -> User:
        try:
            user = self.db.scalar(select(User).where(User.username == username))
        except SQLAlchemyError as e:
            raise self._fail(f"get user {username!r}", e) from e
        if user is None:
            raise NotFound("user not found")
        return user

    def delete_user(self, username: str) -> None:
        action = f"delete user {username!r}"
        try:
            result = self.db.execute(delete(User).where(User.username == username))
        except SQLAlchemyError as e:
            raise self._fail(action, e) from e
        if result.rowcount == 0:
            self.db.rollback()
            raise NotFound("user not found")
        self._commit(action)
