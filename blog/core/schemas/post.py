"""Post schema definitions."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from blog.db.models import Post as PostModel


class PostIn(BaseModel):
    """Schema for creating or updating a Post"""

    slug: str = Field("", description="Unique URL slug")
    title: str = Field("", description="Post title")
    body: str = Field("", description="Trusted raw HTML body")


class Post(BaseModel):
    """Schema for Post response"""

    slug: str
    author: str = Field("", description="Display name of the author")
    title: str
    body: str
    created: Optional[datetime] = None
    modified: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, post: PostModel) -> "Post":
        return cls(
            slug=post.slug,
            author=post.author_display_name,
            title=post.title,
            body=post.body,
            created=post.created_at,
            modified=post.modified_at,
        )


class PostResponse(BaseModel):
    post: Post


class PostList(BaseModel):
    posts: List[Post]
