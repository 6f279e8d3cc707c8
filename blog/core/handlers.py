"""
Exception handlers mapping domain errors onto HTTP responses.

API responses carry ``{"error": "<message>"}``. Web rejections redirect.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response

from blog.core.errors import (
    BlogError,
    InvalidToken,
    LoginRequired,
    SessionError,
    StoreError,
    Unauthorized,
)

logger = logging.getLogger(__name__)

API_PREFIX = "/api"


def json_error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _is_api_request(request: Request) -> bool:
    return request.url.path.startswith(API_PREFIX)


async def login_required_handler(request: Request, exc: LoginRequired) -> Response:
    return RedirectResponse(url="/", status_code=302)


async def invalid_token_handler(request: Request, exc: InvalidToken) -> Response:
    return json_error(400, exc.message)


async def unauthorized_handler(request: Request, exc: Unauthorized) -> Response:
    return Response(status_code=401)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "invalid request"
    return json_error(400, message)


async def server_error_handler(request: Request, exc: BlogError) -> Response:
    logger.error(
        f"Request failed: {exc.message}",
        extra={"error_type": type(exc).__name__, "path": request.url.path},
    )
    if _is_api_request(request):
        return json_error(500, exc.message)
    return PlainTextResponse(exc.message, status_code=500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LoginRequired, login_required_handler)
    app.add_exception_handler(InvalidToken, invalid_token_handler)
    app.add_exception_handler(Unauthorized, unauthorized_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StoreError, server_error_handler)
    app.add_exception_handler(SessionError, server_error_handler)
