from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse

from mailroom.core import csrf
from mailroom.domain.mail_status import PENDING, PICKED_UP, normalize_status_filter
from mailroom.routers.common import login_redirect, redirect, render
from mailroom.services.customer_service import (
    CustomerError,
    CustomerForm,
    CustomerNotFoundError,
    CustomerService,
)
from mailroom.services.mail_service import MailError, MailService
from mailroom.services.photo_storage import PhotoError, PhotoUpload
from mailroom.services.session_service import current_user_email

router = APIRouter(prefix="/dashboard", tags=["mails"])
mail_service = MailService()
customer_service = CustomerService()

MAILS_PATH = "/dashboard/mails"
NEW_MAIL_PATH = "/dashboard/new-mail"


def _back_to_list(search: str, status: str, **flash):
    status_filter = normalize_status_filter(status)
    return redirect(
        MAILS_PATH,
        search=search,
        status="" if status_filter == "all" else status_filter,
        **flash,
    )


@router.get("/mails", response_class=HTMLResponse)
def list_mails(request: Request, search: str = "", status: str = "all"):
    if not current_user_email(request):
        return login_redirect()
    status_filter = normalize_status_filter(status)
    return render(
        request,
        "mails.html",
        {
            "items": mail_service.list_mails(search, status_filter),
            "search": search,
            "status_filter": status_filter,
            "statuses": (PENDING, PICKED_UP),
        },
    )


@router.post("/mails/{mail_pk}/pickup")
def pickup_mail(
    request: Request,
    mail_pk: str,
    search: str = Form(""),
    status: str = Form(""),
    csrf_token: str = Form(""),
):
    if not current_user_email(request):
        return login_redirect()
    csrf.validate_csrf(request, csrf_token)
    try:
        mail_service.pick_up(mail_pk)
    except MailError as exc:
        return _back_to_list(search, status, error=f"操作失敗：{exc.message}")
    return _back_to_list(search, status, message="已標記為已取")


@router.post("/mails/{mail_pk}/delete")
def delete_mail(
    request: Request,
    mail_pk: str,
    search: str = Form(""),
    status: str = Form(""),
    csrf_token: str = Form(""),
):
    if not current_user_email(request):
        return login_redirect()
    csrf.validate_csrf(request, csrf_token)
    try:
        mail_service.delete(mail_pk)
    except MailError as exc:
        return _back_to_list(search, status, error=f"刪除失敗：{exc.message}")
    return _back_to_list(search, status, message="郵件已刪除")


@router.get("/new-mail", response_class=HTMLResponse)
def new_mail_form(request: Request, q: str = "", customer: str = "", sender: str = ""):
    if not current_user_email(request):
        return login_redirect()
    selected = None
    if customer:
        try:
            selected = customer_service.get(customer)
        except CustomerNotFoundError:
            selected = None
    return render(
        request,
        "new_mail.html",
        {
            "q": q,
            "matches": customer_service.quick_search(q) if q.strip() else [],
            "selected": selected,
            "sender": sender,
        },
    )


@router.post("/new-mail")
async def create_mail(
    request: Request,
    customer_id: str = Form(""),
    sender: str = Form(""),
    photos: Optional[List[UploadFile]] = File(None),
    csrf_token: str = Form(""),
):
    if not current_user_email(request):
        return login_redirect()
    csrf.validate_csrf(request, csrf_token)
    uploads = []
    for upload in photos or []:
        if not upload or not upload.filename:
            continue
        uploads.append(
            PhotoUpload(
                filename=upload.filename,
                content_type=(upload.content_type or "").lower(),
                data=await upload.read(),
            )
        )
    try:
        mail_service.create(customer_id, sender, uploads)
    except (MailError, PhotoError) as exc:
        return redirect(NEW_MAIL_PATH, error=f"新增失敗：{exc.message}", customer=customer_id, sender=sender)
    return redirect(MAILS_PATH, message="郵件已新增")


@router.post("/new-mail/customer")
def create_customer_inline(
    request: Request,
    full_name: str = Form(""),
    phone: str = Form(""),
    email: str = Form(""),
    notes: str = Form(""),
    sender: str = Form(""),
    csrf_token: str = Form(""),
):
    if not current_user_email(request):
        return login_redirect()
    csrf.validate_csrf(request, csrf_token)
    try:
        created = customer_service.create(CustomerForm(full_name=full_name, phone=phone, email=email, notes=notes))
    except CustomerError as exc:
        return redirect(NEW_MAIL_PATH, error=f"建立失敗：{exc.message}", sender=sender)
    return redirect(NEW_MAIL_PATH, message="客戶已建立", customer=created.id, sender=sender)
