import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from mailroom.core.config import get_settings
from mailroom.core.log import configure_logging
from mailroom.core.utils import format_datetime, format_month
from mailroom.routers import auth as auth_router
from mailroom.routers import customers as customers_router
from mailroom.routers import dashboard as dashboard_router
from mailroom.routers import lookup as lookup_router
from mailroom.routers import mails as mails_router
from mailroom.routers import settings as settings_router
from mailroom.routers.common import render

logger = logging.getLogger(__name__)

BASE = os.path.dirname(__file__)
WEB = os.path.join(BASE, "..", "web")
TEMPLATES_DIR = os.path.join(BASE, "..", "templates")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Inject baseline security headers (CSP, anti clickjacking, referrer policy)."""

    def __init__(self, app, *, enforce_hsts: bool) -> None:
        super().__init__(app)
        self._enforce_hsts = enforce_hsts

    async def dispatch(self, request, call_next):
        response = await call_next(request)
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; "
            "img-src 'self' data: blob:; "
            "style-src 'self' 'unsafe-inline'; "
            "script-src 'self' 'unsafe-inline'",
        )
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "same-origin")
        if self._enforce_hsts:
            response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return response


def _build_templates() -> Jinja2Templates:
    templates = Jinja2Templates(directory=TEMPLATES_DIR)
    templates.env.filters["fmt_dt"] = format_datetime
    templates.env.filters["fmt_date"] = lambda value: format_datetime(value, with_time=False)
    templates.env.filters["fmt_month"] = format_month
    return templates


def create_app() -> FastAPI:
    """Factory compatible with uvicorn/gunicorn (`--factory`)."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Mailroom")

    uploads_dir = settings.uploads_dir
    os.makedirs(uploads_dir, exist_ok=True)
    # the uploads mount has to be registered before the broader /static one
    app.mount("/static/uploads", StaticFiles(directory=uploads_dir), name="uploads")
    app.mount("/static", StaticFiles(directory=WEB), name="static")
    app.state.templates = _build_templates()

    allowed_cors = {settings.public_base_url}
    if settings.app_env != "prod":
        allowed_cors.update({"http://localhost:8000", "http://127.0.0.1:8000"})
    allowed_cors = {origin for origin in allowed_cors if origin}
    if allowed_cors:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=sorted(allowed_cors),
            allow_credentials=True,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        )
    app.add_middleware(SecurityHeadersMiddleware, enforce_hsts=settings.app_env == "prod")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_page(request: Request, exc: StarletteHTTPException):
        wants_json = request.url.path.startswith("/api/") or "application/json" in request.headers.get("accept", "")
        if wants_json or exc.status_code not in (404, 403):
            return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=getattr(exc, "headers", None))
        return render(request, "error.html", {"status_code": exc.status_code, "detail": exc.detail}, status_code=exc.status_code)

    app.include_router(auth_router.router)
    app.include_router(dashboard_router.router)
    app.include_router(customers_router.router)
    app.include_router(mails_router.router)
    app.include_router(settings_router.router)
    app.include_router(lookup_router.router)

    logger.info("Mailroom app ready (env=%s)", settings.app_env)
    return app


app = create_app()
