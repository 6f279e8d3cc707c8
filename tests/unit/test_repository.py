"""
Unit tests for post and user persistence
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from blog.core.errors import NotFound, StoreError, ValidationError
from blog.db.models import Post, User
from blog.db.session import check_database_health

pytestmark = pytest.mark.unit


def make_post(user, **kwargs):
    values = {"slug": "hello-world", "title": "Hello", "body": "<p>Hi</p>", "user_id": user.id}
    values.update(kwargs)
    return Post(**values)


class TestPostModel:
    """Post validation and preview"""

    @pytest.mark.parametrize("values,message", [
        ({"slug": ""}, "Slug: invalid value"),
        ({"title": ""}, "Title: empty"),
        ({"user_id": 0}, "UserID: invalid value"),
        ({"user_id": None}, "UserID: invalid value"),
    ])
    def test_validation(self, values, message):
        post = Post(**{"slug": "s", "title": "t", "body": "", "user_id": 1, **values})

        with pytest.raises(ValidationError) as exc_info:
            post.validate()
        assert str(exc_info.value) == message

    def test_slug_checked_before_title(self):
        with pytest.raises(ValidationError) as exc_info:
            Post(slug="", title="", user_id=1).validate()
        assert exc_info.value.field == "Slug"

    def test_preview_strips_tags_and_truncates(self):
        post = Post(slug="s", title="t", user_id=1, body="<p><b>" + "x" * 150 + "</b></p>")

        preview = post.preview()

        assert preview == "x" * 100
        assert "<" not in preview

    def test_preview_of_short_body(self):
        assert Post(slug="s", title="t", user_id=1, body="<p>hi</p>").preview() == "hi"


class TestPostRepository:
    """Upsert and lookups for posts"""

    def test_save_and_get(self, repository, alice):
        repository.save_post(make_post(alice))

        post = repository.get_post_by_slug("hello-world")

        assert post.title == "Hello"
        assert post.author_display_name == "Alice Liddell"
        assert post.created_at is not None
        assert post.modified_at is not None

    def test_missing_post(self, repository):
        with pytest.raises(NotFound):
            repository.get_post_by_slug("nope")

    def test_resave_overwrites_and_keeps_created(self, repository, alice):
        first = repository.save_post(make_post(alice))
        created = first.created_at

        with patch("blog.db.repository.utcnow", return_value=created + timedelta(minutes=5)):
            second = repository.save_post(make_post(alice, title="Hello again"))

        assert second.title == "Hello again"
        assert second.created_at == created
        assert second.modified_at == created + timedelta(minutes=5)
        assert len(repository.get_all_posts()) == 1

    def test_all_posts_newest_first(self, repository, alice):
        base = datetime(2024, 1, 1, 12, 0, 0)
        for offset, slug in enumerate(["first", "second", "third"]):
            with patch("blog.db.repository.utcnow", return_value=base + timedelta(hours=offset)):
                repository.save_post(make_post(alice, slug=slug))

        assert [post.slug for post in repository.get_all_posts()] == ["third", "second", "first"]

    def test_empty_store_lists_nothing(self, repository):
        assert repository.get_all_posts() == []

    def test_store_failure_is_store_error(self, repository, alice):
        with patch.object(repository.db, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk I/O error"))):
            with pytest.raises(StoreError):
                repository.save_post(make_post(alice))

    def test_reload_failure_after_commit_is_store_error(self, repository, alice):
        with patch.object(repository.db, "refresh", side_effect=OperationalError("SELECT", {}, Exception("disk I/O error"))):
            with pytest.raises(StoreError) as exc_info:
                repository.save_post(make_post(alice))
        assert exc_info.value.message == "database error"


class TestUserRepository:
    """Upsert, lookup and delete for users"""

    def test_save_user_assigns_id(self, repository):
        user = repository.save_user(User(username="carol", display_name="Carol", password_hash="x"))
        assert user.id > 0

    def test_save_existing_username_keeps_id(self, repository):
        first = repository.save_user(User(username="carol", display_name="Carol", password_hash="x"))
        second = repository.save_user(User(username="carol", display_name="Caroline", password_hash="y"))

        assert second.id == first.id
        assert repository.get_user_by_username("carol").display_name == "Caroline"

    def test_delete_user(self, repository, alice):
        repository.delete_user("alice")

        with pytest.raises(NotFound):
            repository.get_user_by_username("alice")

    def test_reload_failure_after_commit_is_store_error(self, repository):
        user = User(username="carol", display_name="Carol", password_hash="x")
        with patch.object(repository.db, "refresh", side_effect=OperationalError("SELECT", {}, Exception("disk I/O error"))):
            with pytest.raises(StoreError):
                repository.save_user(user)

    def test_delete_unknown_user(self, repository):
        with pytest.raises(NotFound):
            repository.delete_user("nobody")

    def test_user_validation(self):
        with pytest.raises(ValidationError):
            User(username="").validate()


class TestDatabaseHealth:
    def test_healthy_database(self, app):
        health = check_database_health(app.state.engine)

        assert health["status"] == "healthy"
        assert health["connected"] is True
        assert health["table_count"] >= 2
