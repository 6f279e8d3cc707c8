from typing import Optional

from fastapi import APIRouter, Depends, status

from blog.core.errors import NotFound, StoreError, ValidationError
from blog.core.guards import token_guard
from blog.core.handlers import json_error
from blog.core.deps import get_repository
from blog.core.schemas.auth import ErrorResponse
from blog.core.schemas.post import Post, PostIn, PostList, PostResponse
from blog.db.models import Post as PostModel
from blog.db.models import User
from blog.db.repository import Repository

# Create router
router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Invalid input or store error"},
    },
)


def _save_post(
    post_in: PostIn, user: User, repository: Repository, slug: Optional[str] = None
):
    post = PostModel(
        slug=slug or post_in.slug,
        user_id=user.id,
        title=post_in.title,
        body=post_in.body,
    )
    try:
        post.validate()
        saved = repository.save_post(post)
    except (ValidationError, StoreError) as e:
        return json_error(400, e.message)

    return PostResponse(post=Post.from_model(saved))


@router.post(
    "",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Post",
    responses={401: {"description": "Token user no longer exists"}},
)
def create_post(
    post_in: PostIn,
    user: User = Depends(token_guard),
    repository: Repository = Depends(get_repository),
):
    """Create or overwrite the post named by ``slug`` in the body."""
    return _save_post(post_in, user, repository)


@router.put(
    "/{slug}",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Update Post",
    responses={401: {"description": "Token user no longer exists"}},
)
def update_post(
    slug: str,
    post_in: PostIn,
    user: User = Depends(token_guard),
    repository: Repository = Depends(get_repository),
):
    """Create or overwrite the post at ``slug``. The path slug wins over the body."""
    return _save_post(post_in, user, repository, slug=slug)


@router.get("", response_model=PostList, summary="List Posts")
def list_posts(repository: Repository = Depends(get_repository)):
    """All posts, newest first."""
    try:
        posts = repository.get_all_posts()
    except StoreError as e:
        return json_error(400, e.message)
    return PostList(posts=[Post.from_model(post) for post in posts])


@router.get(
    "/{slug}",
    response_model=PostResponse,
    summary="Get Post",
    responses={404: {"model": ErrorResponse, "description": "Not found"}},
)
def get_post(slug: str, repository: Repository = Depends(get_repository)):
    try:
        post = repository.get_post_by_slug(slug)
    except NotFound as e:
        return json_error(404, e.message)
    except StoreError as e:
        return json_error(400, e.message)
    return PostResponse(post=Post.from_model(post))
