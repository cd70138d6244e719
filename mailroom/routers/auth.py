from __future__ import annotations

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse

from mailroom.core import csrf
from mailroom.core.config import get_settings
from mailroom.routers.common import redirect, render
from mailroom.services.auth_service import AuthError, AuthService
from mailroom.services.session_service import (
    SESSION_COOKIE_NAME,
    clear_session_cookie,
    current_user_email,
    set_session_cookie,
)

router = APIRouter(prefix="/auth", tags=["auth"])
auth_service = AuthService()


@router.get("", response_class=HTMLResponse)
def auth_page(request: Request, mode: str = "login", email: str = ""):
    if current_user_email(request):
        return redirect("/dashboard")
    settings = get_settings()
    is_signup = mode == "signup" and settings.allow_signup
    return render(
        request,
        "auth.html",
        {
            "is_signup": is_signup,
            "allow_signup": settings.allow_signup,
            "email": email,
            "min_password_length": settings.min_password_length,
            "business_name": settings.business_name,
        },
    )


@router.post("/login")
def login(request: Request, email: str = Form(""), password: str = Form(""), csrf_token: str = Form("")):
    csrf.validate_csrf(request, csrf_token)
    try:
        result = auth_service.login(email, password)
    except AuthError as exc:
        return redirect("/auth", error=exc.message, email=email.strip())
    response = redirect("/dashboard", message="登入成功，歡迎回來！")
    set_session_cookie(response, result.session_token)
    return response


@router.post("/register")
def register(request: Request, email: str = Form(""), password: str = Form(""), csrf_token: str = Form("")):
    csrf.validate_csrf(request, csrf_token)
    try:
        result = auth_service.register(email, password)
    except AuthError as exc:
        return redirect("/auth", error=exc.message, mode="signup", email=email.strip())
    response = redirect("/dashboard", message="帳戶已建立")
    set_session_cookie(response, result.session_token)
    return response


@router.post("/logout")
def logout(request: Request, csrf_token: str = Form("")):
    csrf.validate_csrf(request, csrf_token)
    auth_service.logout(request.cookies.get(SESSION_COOKIE_NAME))
    response = redirect("/auth", message="已登出")
    clear_session_cookie(response)
    return response
