from __future__ import annotations

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse

from mailroom.core import csrf
from mailroom.domain.mail_status import DEFAULT_PICKUP_METHOD, PICKUP_METHODS
from mailroom.routers.common import login_redirect, redirect, render
from mailroom.services.customer_service import (
    CustomerError,
    CustomerForm,
    CustomerNotFoundError,
    CustomerService,
)
from mailroom.services.mail_service import MailError, MailService
from mailroom.services.session_service import current_user_email

router = APIRouter(prefix="/dashboard/customers", tags=["customers"])
customer_service = CustomerService()
mail_service = MailService()

LIST_PATH = "/dashboard/customers"


def _detail_path(customer_pk: str) -> str:
    return f"{LIST_PATH}/{customer_pk}"


@router.get("", response_class=HTMLResponse)
def list_customers(request: Request, search: str = ""):
    if not current_user_email(request):
        return login_redirect()
    return render(
        request,
        "customers.html",
        {"customers": customer_service.list_customers(search), "search": search},
    )


@router.post("")
def create_customer(
    request: Request,
    full_name: str = Form(""),
    phone: str = Form(""),
    email: str = Form(""),
    notes: str = Form(""),
    csrf_token: str = Form(""),
):
    if not current_user_email(request):
        return login_redirect()
    csrf.validate_csrf(request, csrf_token)
    try:
        customer_service.create(CustomerForm(full_name=full_name, phone=phone, email=email, notes=notes))
    except CustomerError as exc:
        return redirect(LIST_PATH, error=f"新增失敗：{exc.message}")
    return redirect(LIST_PATH, message="客戶已建立")


@router.get("/search")
def search_customers(request: Request, q: str = ""):
    if not current_user_email(request):
        raise HTTPException(401, "請先登入")
    return {
        "customers": [
            {
                "id": c.id,
                "customer_id": c.customer_id,
                "full_name": c.full_name,
                "phone": c.phone,
            }
            for c in customer_service.quick_search(q)
        ]
    }


@router.get("/{customer_pk}", response_class=HTMLResponse)
def customer_detail(request: Request, customer_pk: str, month: str = ""):
    if not current_user_email(request):
        return login_redirect()
    try:
        detail = customer_service.detail(customer_pk, month)
    except CustomerNotFoundError:
        return redirect(LIST_PATH, error="找不到客戶")
    return render(
        request,
        "customer_detail.html",
        {
            "detail": detail,
            "pickup_methods": PICKUP_METHODS,
            "default_pickup_method": DEFAULT_PICKUP_METHOD,
        },
    )


@router.post("/{customer_pk}")
def update_customer(
    request: Request,
    customer_pk: str,
    full_name: str = Form(""),
    phone: str = Form(""),
    email: str = Form(""),
    notes: str = Form(""),
    csrf_token: str = Form(""),
):
    if not current_user_email(request):
        return login_redirect()
    csrf.validate_csrf(request, csrf_token)
    try:
        customer_service.update(customer_pk, CustomerForm(full_name=full_name, phone=phone, email=email, notes=notes))
    except CustomerNotFoundError:
        return redirect(LIST_PATH, error="找不到客戶")
    except CustomerError as exc:
        return redirect(_detail_path(customer_pk), error=f"更新失敗：{exc.message}")
    return redirect(_detail_path(customer_pk), message="更新成功")


@router.post("/{customer_pk}/delete")
def delete_customer(request: Request, customer_pk: str, csrf_token: str = Form("")):
    if not current_user_email(request):
        return login_redirect()
    csrf.validate_csrf(request, csrf_token)
    try:
        customer_service.delete(customer_pk)
    except CustomerNotFoundError:
        return redirect(LIST_PATH, error="找不到客戶")
    return redirect(LIST_PATH, message="客戶已刪除")


@router.post("/{customer_pk}/pickup")
def pickup_all(
    request: Request,
    customer_pk: str,
    pickup_method: str = Form(DEFAULT_PICKUP_METHOD),
    csrf_token: str = Form(""),
):
    if not current_user_email(request):
        return login_redirect()
    csrf.validate_csrf(request, csrf_token)
    try:
        count = mail_service.pick_up_all(customer_pk, pickup_method)
    except MailError as exc:
        return redirect(_detail_path(customer_pk), error=f"操作失敗：{exc.message}")
    if not count:
        return redirect(_detail_path(customer_pk), error="沒有待取郵件")
    return redirect(_detail_path(customer_pk), message=f"取件完成，已取 {count} 件郵件")
