"""Database models"""

from blog.db.models.post import Post
from blog.db.models.user import User

__all__ = [
    "Post",
    "User",
]
