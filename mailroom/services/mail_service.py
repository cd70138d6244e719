"""
Mail registration and pickup.

A mail starts as 待取 and can only move once, to 已取, stamped with the pickup
time and method. The repository enforces this in the UPDATE itself
(`WHERE status = '待取'`), so a second pickup of the same mail changes nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from mailroom.core.utils import utcnow
from mailroom.db.models import Customer, Mail
from mailroom.domain.mail_status import (
    DEFAULT_PICKUP_METHOD,
    STATUS_FILTER_ALL,
    can_pick_up,
    normalize_pickup_method,
    normalize_status_filter,
)
from mailroom.repositories.sql_repository import SQLRepository
from mailroom.services import photo_storage
from mailroom.services.photo_storage import PhotoUpload

logger = logging.getLogger(__name__)


class MailError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MailNotFoundError(MailError):
    pass


class MailValidationError(MailError):
    pass


class InvalidTransitionError(MailError):
    pass


@dataclass
class MailListItem:
    mail: Mail
    customer: Optional[Customer]


@dataclass
class MailService:
    repository: SQLRepository = field(default_factory=SQLRepository)

    def create(self, customer_pk: str | None, sender: str | None, photos: list[PhotoUpload] | None = None) -> Mail:
        if not (customer_pk or "").strip():
            raise MailValidationError("請選擇客戶")
        customer = self.repository.get_customer(customer_pk.strip())
        if not customer:
            raise MailValidationError("請選擇客戶")
        sender_value = (sender or "").strip()
        if not sender_value:
            raise MailValidationError("請輸入發件人")
        uploads = [p for p in (photos or []) if p.data or p.filename]
        urls = photo_storage.save_photos(uploads) if uploads else []
        mail = self.repository.create_mail(customer.id, sender_value, urls or None)
        logger.info(
            "Mail %s registered for customer %s from %r with %d photos",
            mail.id,
            customer.customer_id,
            sender_value,
            len(urls),
        )
        return mail

    def list_mails(self, search: str | None = None, status: str | None = None) -> list[MailListItem]:
        status_filter = normalize_status_filter(status)
        rows = self.repository.list_mails(
            search=search,
            status=None if status_filter == STATUS_FILTER_ALL else status_filter,
        )
        return [MailListItem(mail=mail, customer=customer) for mail, customer in rows]

    def get(self, mail_pk: str) -> Mail:
        mail = self.repository.get_mail(mail_pk)
        if not mail:
            raise MailNotFoundError("找不到郵件")
        return mail

    def pick_up(self, mail_pk: str, method: str | None = DEFAULT_PICKUP_METHOD) -> Mail:
        mail = self.get(mail_pk)
        pickup_method = normalize_pickup_method(method)
        if not pickup_method:
            raise MailValidationError("取件方式無效")
        if not can_pick_up(mail.status):
            raise InvalidTransitionError("此郵件已取件")
        if not self.repository.mark_mail_picked_up(mail_pk, pickup_method, utcnow()):
            raise InvalidTransitionError("此郵件已取件")
        logger.info("Mail %s picked up (%s)", mail_pk, pickup_method)
        return self.get(mail_pk)

    def pick_up_all(self, customer_pk: str, method: str | None = DEFAULT_PICKUP_METHOD) -> int:
        """Marks every pending mail of the customer as picked up. Returns how many."""
        customer = self.repository.get_customer(customer_pk)
        if not customer:
            raise MailValidationError("找不到客戶")
        pickup_method = normalize_pickup_method(method)
        if not pickup_method:
            raise MailValidationError("取件方式無效")
        count = self.repository.mark_customer_mails_picked_up(customer_pk, pickup_method, utcnow())
        logger.info("Customer %s picked up %d mails (%s)", customer.customer_id, count, pickup_method)
        return count

    def delete(self, mail_pk: str) -> None:
        photos = self.repository.delete_mail(mail_pk)
        if photos is None:
            raise MailNotFoundError("找不到郵件")
        photo_storage.remove_photos(photos)
        logger.info("Mail %s deleted", mail_pk)
