"""
Authentication API endpoint.

Exchanges a username and password for a bearer token valid for
``TOKEN_LIFETIME_DAYS``.
"""

import logging

from fastapi import APIRouter, Depends, Request

from blog.core.credentials import CredentialStore
from blog.core.deps import get_credential_store, get_token_service
from blog.core.errors import AuthenticationFailed, StoreError
from blog.core.handlers import json_error
from blog.core.logging_config import client_ip, log_security_event
from blog.core.schemas.auth import AuthenticationRequest, ErrorResponse, TokenResponse
from blog.core.tokens import TokenService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=TokenResponse,
    summary="Authenticate",
    responses={400: {"model": ErrorResponse, "description": "Login failed"}},
)
def authenticate(
    request: Request,
    credentials_in: AuthenticationRequest,
    credentials: CredentialStore = Depends(get_credential_store),
    token_service: TokenService = Depends(get_token_service),
):
    """
    Issue a bearer token for valid credentials.

    The error is the same "login failed" whether the username is unknown or
    the password is wrong.
    """
    try:
        user = credentials.authenticate(credentials_in.username, credentials_in.password)
    except AuthenticationFailed as e:
        log_security_event(
            "login_failed",
            "API login failed",
            username=credentials_in.username,
            ip_address=client_ip(request),
        )
        return json_error(400, e.message)
    except StoreError as e:
        return json_error(400, e.message)

    token = token_service.issue_for_user(user.username)
    log_security_event(
        "login_succeeded",
        "API token issued",
        username=user.username,
        ip_address=client_ip(request),
    )
    return TokenResponse(token=token)
