"""Post authoring pages. Both routes require a logged in user."""

import logging

from fastapi import APIRouter, Depends, Form, Request

from blog.core.deps import get_repository, get_session
from blog.core.errors import BlogError
from blog.core.guards import session_guard
from blog.db.models import Post, User
from blog.db.repository import Repository
from blog.web.utils.rendering import flash_and_redirect, redirect_to, render_page

logger = logging.getLogger(__name__)

router = APIRouter()

POST_FORM = "post"
# A larger body would push the session cookie past the browser limit
MAX_STASHED_BODY = 2048


@router.get("/new")
def create_form(request: Request, user: User = Depends(session_guard)):
    current_post = get_session(request).pop_form(POST_FORM)
    return render_page(request, "create.html", {"CurrentPost": current_post})


@router.post("/new")
def save_post(
    request: Request,
    slug: str = Form(""),
    title: str = Form(""),
    body: str = Form(""),
    user: User = Depends(session_guard),
    repository: Repository = Depends(get_repository),
):
    """Create or overwrite a post authored by the logged in user."""
    form_values = {"slug": slug, "title": title}
    if len(body.encode("utf-8")) <= MAX_STASHED_BODY:
        form_values["body"] = body
    post = Post(slug=slug, title=title, body=body, user_id=user.id)

    try:
        post.validate()
        repository.save_post(post)
    except BlogError as e:
        return flash_and_redirect(request, e.message, "/new", POST_FORM, form_values)

    logger.info("Saved post", extra={"slug": slug, "username": user.username})
    return redirect_to(request, f"/{slug}")
