"""Helpers shared by the HTML routers (templates, flash redirects, staff gate)."""
from __future__ import annotations

from urllib.parse import urlencode

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from mailroom.core import csrf
from mailroom.services.session_service import current_user_email

LOGIN_PATH = "/auth"


def templates(request: Request) -> Jinja2Templates:
    tpl = getattr(getattr(request.app, "state", None), "templates", None)
    if tpl:
        return tpl
    raise RuntimeError("Templates not configured")


def render(request: Request, name: str, context: dict | None = None, *, status_code: int = 200):
    """Render a template with the CSRF token and flash params in context."""
    token = csrf.ensure_csrf_token(request)
    payload = {
        "csrf_token": token,
        "message": request.query_params.get("message", ""),
        "error": request.query_params.get("error", ""),
        "staff_email": current_user_email(request),
        "current_path": request.url.path,
    }
    payload.update(context or {})
    response = templates(request).TemplateResponse(request, name, payload, status_code=status_code)
    csrf.set_csrf_cookie(response, token)
    return response


def redirect(path: str, *, message: str = "", error: str = "", **params) -> RedirectResponse:
    query = {k: v for k, v in params.items() if v}
    if message:
        query["message"] = message
    if error:
        query["error"] = error
    dest = f"{path}?{urlencode(query)}" if query else path
    return RedirectResponse(dest, status_code=303)


def login_redirect() -> RedirectResponse:
    return RedirectResponse(LOGIN_PATH, status_code=303)
