import re
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from blog.core.errors import ValidationError
from blog.db.base import Base

if TYPE_CHECKING:
    from blog.db.models.user import User

_TAG_RE = re.compile(r"<.*?>", re.DOTALL)

PREVIEW_LENGTH = 100


class Post(Base):
    """A blog post, keyed by its slug. ``body`` is trusted raw HTML."""

    __tablename__ = "posts"

    slug: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[Optional[datetime]] = mapped_column("created", DateTime, nullable=True)
    modified_at: Mapped[Optional[datetime]] = mapped_column("modified", DateTime, nullable=True)

    # Read-only join; the author's name is never copied onto the post
    author: Mapped[Optional["User"]] = relationship("User", lazy="joined", viewonly=True)

    @property
    def author_display_name(self) -> str:
        if self.author is None:
            return ""
        return self.author.display_name

    def validate(self) -> None:
        if not self.slug:
            raise ValidationError("Slug", "invalid value")
        if not self.title:
            raise ValidationError("Title", "empty")
        if not self.user_id or self.user_id <= 0:
            raise ValidationError("UserID", "invalid value")

    def preview(self) -> str:
        """Body with all HTML tags stripped, cut to the first 100 characters."""
        text = _TAG_RE.sub("", self.body or "")
        return text[:PREVIEW_LENGTH]

    def __repr__(self) -> str:
        return f"<Post(slug='{self.slug}', title='{self.title}')>"
