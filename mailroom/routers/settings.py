from __future__ import annotations

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse

from mailroom.core import csrf
from mailroom.routers.common import login_redirect, redirect, render
from mailroom.services.session_service import current_user_email
from mailroom.services.settings_service import SettingNotFoundError, SettingsService

router = APIRouter(prefix="/dashboard/settings", tags=["settings"])
settings_service = SettingsService()


@router.get("", response_class=HTMLResponse)
def settings_page(request: Request):
    if not current_user_email(request):
        return login_redirect()
    return render(request, "settings.html", {"settings": settings_service.list_settings()})


@router.post("")
def update_setting(request: Request, key: str = Form(""), value: str = Form(""), csrf_token: str = Form("")):
    if not current_user_email(request):
        return login_redirect()
    csrf.validate_csrf(request, csrf_token)
    try:
        settings_service.update(key, value)
    except SettingNotFoundError:
        raise HTTPException(404, "設置不存在")
    return redirect("/dashboard/settings", message="設置已保存")
