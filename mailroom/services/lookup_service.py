"""Public customer lookup by phone number."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from mailroom.core.utils import as_utc
from mailroom.db.models import Customer, Mail
from mailroom.domain.customers import normalize_phone
from mailroom.domain.mail_status import PENDING, PICKED_UP
from mailroom.repositories.sql_repository import SQLRepository
from mailroom.services.customer_service import MONTH_FILTER_ALL, month_options_from, pickup_history

logger = logging.getLogger(__name__)


@dataclass
class LookupResult:
    customer: Optional[Customer]
    pending_mails: list[Mail] = field(default_factory=list)
    picked_up_mails: list[Mail] = field(default_factory=list)
    month_options: list[str] = field(default_factory=list)
    month_filter: str = MONTH_FILTER_ALL
    picked_up_total: int = 0


def _iso(value) -> str | None:
    normalized = as_utc(value)
    return normalized.isoformat() if normalized else None


def mail_payload(mail: Mail) -> dict:
    return {
        "id": mail.id,
        "sender": mail.sender,
        "photos": mail.photos or None,
        "status": mail.status,
        "pickup_time": _iso(mail.pickup_time),
        "pickup_method": mail.pickup_method,
        "created_at": _iso(mail.created_at),
    }


def lookup_payload(result: LookupResult) -> dict:
    """JSON shape served by POST /api/customer-lookup."""
    if result.customer is None:
        return {"customer": None, "pendingMails": [], "pickedUpMails": []}
    customer = result.customer
    return {
        "customer": {
            "id": customer.id,
            "customer_id": customer.customer_id,
            "full_name": customer.full_name,
            "phone": customer.phone,
        },
        "pendingMails": [mail_payload(m) for m in result.pending_mails],
        "pickedUpMails": [mail_payload(m) for m in result.picked_up_mails],
    }


@dataclass
class LookupService:
    repository: SQLRepository = field(default_factory=SQLRepository)

    def lookup(self, phone: str | None, month: str | None = None) -> LookupResult:
        trimmed = normalize_phone(phone)
        if not trimmed:
            return LookupResult(customer=None)
        customer = self.repository.get_customer_by_phone(trimmed)
        if not customer:
            logger.info("Lookup: no customer for phone %s", trimmed)
            return LookupResult(customer=None)
        pending = self.repository.list_customer_mails(customer.id, status=PENDING)
        options = month_options_from(self.repository.list_pickup_times(customer.id))
        history, month_filter = pickup_history(self.repository, customer.id, month)
        logger.info(
            "Lookup: customer %s has %d pending and %d picked up mails",
            customer.customer_id,
            len(pending),
            len(history),
        )
        return LookupResult(
            customer=customer,
            pending_mails=pending,
            picked_up_mails=history,
            month_options=options,
            month_filter=month_filter,
            picked_up_total=self.repository.count_customer_mails(customer.id, PICKED_UP),
        )
