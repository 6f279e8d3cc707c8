"""Rendering helpers shared by the web routes.

Every page gets the same base data: the active username and the flash
messages queued by the previous request. The session cookie is written only
when a helper changed it.
"""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import RedirectResponse, Response

from blog.core.deps import get_session
from blog.core.sessions import SessionState


def prepare_data(request: Request, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Add ``ActiveUser`` and the consumed ``Flashes`` to the template data."""
    session = get_session(request)
    data = dict(data or {})

    flashes = session.consume_flashes()
    if flashes:
        data["Flashes"] = flashes

    if session.active_username:
        data["ActiveUser"] = session.active_username
    return data


def _commit_session(request: Request, session: SessionState, response: Response) -> Response:
    if session.modified:
        request.app.state.session_manager.save(session, response)
    return response


def render_page(
    request: Request,
    name: str,
    data: Optional[Dict[str, Any]] = None,
    status_code: int = 200,
) -> Response:
    """Render ``name`` inside the main layout and persist session changes."""
    context = prepare_data(request, data)
    templates = request.app.state.templates
    response = templates.TemplateResponse(request, name, context, status_code=status_code)
    return _commit_session(request, get_session(request), response)


def redirect_to(request: Request, url: str) -> Response:
    """302 to ``url``, carrying any flashes or stashed forms in the cookie."""
    response = RedirectResponse(url=url, status_code=302)
    return _commit_session(request, get_session(request), response)


def flash_and_redirect(
    request: Request,
    message: str,
    url: str,
    form_name: Optional[str] = None,
    form_values: Optional[Dict[str, Any]] = None,
) -> Response:
    session = get_session(request)
    session.add_flash(message)
    if form_name is not None:
        session.stash_form(form_name, form_values or {})
    return redirect_to(request, url)
