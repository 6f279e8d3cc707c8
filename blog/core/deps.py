"""FastAPI dependencies for the collaborators built in ``create_app``."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from blog.core.credentials import CredentialStore
from blog.core.sessions import SessionState
from blog.core.tokens import TokenService
from blog.db.repository import Repository
from blog.db.session import get_db


def get_repository(db: Session = Depends(get_db)) -> Repository:
    return Repository(db)


def get_credential_store(
    request: Request, repository: Repository = Depends(get_repository)
) -> CredentialStore:
    return CredentialStore(repository, request.app.state.password_hasher)


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_session(request: Request) -> SessionState:
    """Load the web session once per request and reuse it afterwards."""
    session = getattr(request.state, "blog_session", None)
    if session is None:
        session = request.app.state.session_manager.load(request)
        request.state.blog_session = session
    return session
