"""Public lookup page and its JSON endpoint."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse

from mailroom.core.config import get_settings
from mailroom.routers.common import render
from mailroom.services.lookup_service import LookupService, lookup_payload
from mailroom.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["lookup"])
lookup_service = LookupService()
settings_service = SettingsService()


@router.get("/", response_class=HTMLResponse)
@router.get("/lookup", response_class=HTMLResponse)
def lookup_page(request: Request, phone: str = "", month: str = "", history: str = ""):
    searched = bool(phone.strip())
    result = lookup_service.lookup(phone, month) if searched else None
    return render(
        request,
        "lookup.html",
        {
            "phone": phone.strip(),
            "searched": searched,
            "result": result,
            "show_history": history == "1" or bool(month),
            "whatsapp_link": settings_service.whatsapp_link(),
            "business_name": get_settings().business_name,
        },
    )


@router.post("/api/customer-lookup")
async def customer_lookup_api(request: Request):
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    phone = payload.get("phone") if isinstance(payload, dict) else None
    if not phone or not isinstance(phone, str):
        logger.info("Lookup API called without a phone number")
        return JSONResponse({"error": "Phone number is required"}, status_code=400)
    try:
        result = lookup_service.lookup(phone)
        body = lookup_payload(result)
    except Exception:
        logger.exception("Error in customer lookup")
        return JSONResponse({"error": "Internal server error"}, status_code=500)
    return JSONResponse(body)
