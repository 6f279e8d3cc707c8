"""Home page and single post pages"""

import logging

from fastapi import APIRouter, Depends, Request

from blog.core.deps import get_repository
from blog.core.errors import NotFound
from blog.db.repository import Repository
from blog.web.utils.rendering import render_page

logger = logging.getLogger(__name__)

router = APIRouter()

# Registered after every other web router so it never shadows a fixed path
post_router = APIRouter()


@router.get("/")
def index(request: Request, repository: Repository = Depends(get_repository)):
    """All posts, newest first"""
    posts = repository.get_all_posts()
    return render_page(request, "root.html", {"Posts": posts})


@post_router.get("/{slug}")
def read_post(slug: str, request: Request, repository: Repository = Depends(get_repository)):
    """Single post page"""
    try:
        post = repository.get_post_by_slug(slug)
    except NotFound:
        return render_page(request, "not_found.html", {"Slug": slug}, status_code=404)
    return render_page(request, "post.html", {"Post": post})
