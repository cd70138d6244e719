"""
Customer records: list/search, create, edit, delete and the detail view.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy.exc import IntegrityError

from mailroom.core.config import get_settings
from mailroom.core.utils import month_bounds, month_key, parse_month_key
from mailroom.db.models import Customer, Mail
from mailroom.domain.customers import normalize_phone, optional_text
from mailroom.domain.mail_status import PENDING, PICKED_UP
from mailroom.repositories.sql_repository import SQLRepository
from mailroom.services import photo_storage

logger = logging.getLogger(__name__)

MONTH_FILTER_ALL = "all"
CUSTOMER_ID_ATTEMPTS = 3


class CustomerError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CustomerNotFoundError(CustomerError):
    pass


class DuplicatePhoneError(CustomerError):
    pass


class CustomerValidationError(CustomerError):
    pass


@dataclass
class CustomerForm:
    full_name: str = ""
    phone: str = ""
    email: str = ""
    notes: str = ""


@dataclass
class CustomerSummary:
    customer: Customer
    pending_count: int


@dataclass
class CustomerDetail:
    customer: Customer
    pending_mails: list[Mail]
    picked_up_mails: list[Mail]
    month_options: list[str]
    month_filter: str = MONTH_FILTER_ALL
    has_history: bool = False


def month_options_from(times) -> list[str]:
    """Distinct `YYYY-MM` keys, newest first."""
    return sorted({month_key(t) for t in times if t is not None}, reverse=True)


def pickup_history(repository: SQLRepository, customer_pk: str, month: Optional[str]) -> tuple[list[Mail], str]:
    """Picked-up mails, optionally limited to one `YYYY-MM` pickup month."""
    parsed = parse_month_key(month)
    if not parsed:
        return repository.list_customer_mails(customer_pk, status=PICKED_UP), MONTH_FILTER_ALL
    start, end = month_bounds(*parsed)
    history = repository.list_customer_mails(customer_pk, status=PICKED_UP, picked_from=start, picked_until=end)
    return history, (month or "").strip()


@dataclass
class CustomerService:
    repository: SQLRepository = field(default_factory=SQLRepository)

    def _clean(self, form: CustomerForm) -> dict:
        full_name = (form.full_name or "").strip()
        phone = normalize_phone(form.phone)
        if not full_name:
            raise CustomerValidationError("請輸入客戶姓名")
        if not phone:
            raise CustomerValidationError("請輸入電話號碼")
        return {
            "full_name": full_name,
            "phone": phone,
            "email": optional_text(form.email),
            "notes": optional_text(form.notes),
        }

    def list_customers(self, search: str | None = None) -> list[CustomerSummary]:
        rows = self.repository.list_customers_with_pending(search)
        return [CustomerSummary(customer=c, pending_count=n) for c, n in rows]

    def quick_search(self, query: str | None, limit: int = 10) -> list[Customer]:
        return self.repository.search_customers(query or "", limit=limit)

    def get(self, customer_pk: str) -> Customer:
        customer = self.repository.get_customer(customer_pk)
        if not customer:
            raise CustomerNotFoundError("找不到客戶")
        return customer

    def create(self, form: CustomerForm) -> Customer:
        values = self._clean(form)
        if self.repository.get_customer_by_phone(values["phone"]):
            raise DuplicatePhoneError("此電話號碼已存在")
        prefix = get_settings().customer_id_prefix
        for attempt in range(1, CUSTOMER_ID_ATTEMPTS + 1):
            try:
                customer = self.repository.create_customer(prefix=prefix, **values)
            except IntegrityError as exc:
                if self.repository.get_customer_by_phone(values["phone"]):
                    raise DuplicatePhoneError("此電話號碼已存在") from exc
                if attempt == CUSTOMER_ID_ATTEMPTS:
                    raise
                # another request took the same customer_id
                logger.warning("Customer id collision, retrying (attempt %d)", attempt)
                continue
            logger.info("Customer %s created (%s)", customer.customer_id, customer.id)
            return customer

    def update(self, customer_pk: str, form: CustomerForm) -> Customer:
        current = self.get(customer_pk)
        values = self._clean(form)
        other = self.repository.get_customer_by_phone(values["phone"])
        if other and other.id != current.id:
            raise DuplicatePhoneError("此電話號碼已存在")
        try:
            self.repository.update_customer(customer_pk, **values)
        except IntegrityError as exc:
            raise DuplicatePhoneError("此電話號碼已存在") from exc
        logger.info("Customer %s updated", current.customer_id)
        return self.get(customer_pk)

    def delete(self, customer_pk: str) -> int:
        """Removes the customer together with all of its mail (and their photos)."""
        customer = self.get(customer_pk)
        photos = [url for mail in self.repository.list_customer_mails(customer_pk) for url in (mail.photos or [])]
        removed = self.repository.delete_customer(customer_pk)
        photo_storage.remove_photos(photos)
        logger.info("Customer %s deleted with %d mails", customer.customer_id, removed)
        return removed

    def detail(self, customer_pk: str, month: Optional[str] = None) -> CustomerDetail:
        customer = self.get(customer_pk)
        pending = self.repository.list_customer_mails(customer_pk, status=PENDING)
        options = month_options_from(self.repository.list_pickup_times(customer_pk))
        history, month_filter = pickup_history(self.repository, customer_pk, month)
        return CustomerDetail(
            customer=customer,
            pending_mails=pending,
            picked_up_mails=history,
            month_options=options,
            month_filter=month_filter,
            has_history=bool(options) or bool(history),
        )
