from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse

from mailroom.routers.common import login_redirect, render
from mailroom.services.dashboard_service import DashboardService
from mailroom.services.session_service import current_user_email

router = APIRouter(prefix="/dashboard", tags=["dashboard"])
dashboard_service = DashboardService()


@router.get("", response_class=HTMLResponse)
def dashboard(request: Request):
    if not current_user_email(request):
        return login_redirect()
    return render(request, "dashboard.html", {"stats": dashboard_service.stats()})
