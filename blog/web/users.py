"""Registration, login and logout pages.

Form errors are flashed and the submitted values stashed in the session, so
the redirected GET can show the message and refill the form. Passwords are
never stashed.
"""

import logging

from fastapi import APIRouter, Depends, Form, Request

from blog.core.credentials import CredentialStore
from blog.core.deps import get_credential_store, get_session
from blog.core.errors import AuthenticationFailed, BlogError, NotFound
from blog.core.guards import session_guard
from blog.core.logging_config import client_ip, log_security_event
from blog.db.models import User
from blog.web.utils.rendering import flash_and_redirect, redirect_to, render_page

logger = logging.getLogger(__name__)

router = APIRouter()

REGISTER_FORM = "register"


@router.get("/register")
def register_form(request: Request):
    current_user = get_session(request).pop_form(REGISTER_FORM)
    return render_page(request, "register.html", {"CurrentUser": current_user})


@router.post("/register")
def register(
    request: Request,
    username: str = Form(""),
    name: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form("", alias="confirmPassword"),
    credentials: CredentialStore = Depends(get_credential_store),
):
    """Create a new user, then send them home to log in."""
    form_values = {"username": username, "name": name}
    user = User(username=username, display_name=name)

    def fail(message: str):
        return flash_and_redirect(request, message, "/register", REGISTER_FORM, form_values)

    try:
        user.validate()
    except BlogError as e:
        return fail(e.message)

    if password != confirm_password:
        return fail("passwords don't match")

    try:
        credentials.find_by_username(username)
    except NotFound:
        pass
    else:
        return fail("username already taken")

    try:
        credentials.upsert(user, password)
    except BlogError as e:
        return fail(e.message)

    log_security_event(
        "user_registered",
        "New user registered",
        username=username,
        ip_address=client_ip(request),
    )
    return redirect_to(request, "/")


@router.get("/login")
def login_form(request: Request):
    return render_page(request, "login.html")


@router.post("/login")
def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    credentials: CredentialStore = Depends(get_credential_store),
):
    try:
        user = credentials.authenticate(username, password)
    except AuthenticationFailed as e:
        log_security_event(
            "login_failed",
            "Web login failed",
            username=username,
            ip_address=client_ip(request),
        )
        return flash_and_redirect(request, e.message, "/login")

    get_session(request).set_active_user(user.username, user.id)
    log_security_event(
        "login_succeeded",
        "Web login succeeded",
        username=user.username,
        ip_address=client_ip(request),
    )
    return redirect_to(request, "/")


@router.api_route("/logout", methods=["GET", "POST"])
def logout(request: Request, user: User = Depends(session_guard)):
    get_session(request).clear_active_user()
    logger.info("User logged out", extra={"username": user.username})
    return redirect_to(request, "/")
