from __future__ import annotations

from datetime import datetime, timezone

from mailroom.services.customer_service import CustomerForm, CustomerService
from mailroom.services.lookup_service import LookupService, lookup_payload
from mailroom.services.mail_service import MailService


def _seed():
    customer = CustomerService().create(CustomerForm(full_name="陳大文", phone="91234567"))
    mails = MailService()
    picked = mails.create(customer.id, "CLP")
    mails.create(customer.id, "HSBC")
    mails.repository.mark_mail_picked_up(picked.id, "速遞", datetime(2026, 10, 3, 2, 30, tzinfo=timezone.utc))
    return customer


def test_lookup_unknown_phone_returns_empty_result(db_env):
    result = LookupService().lookup("99999999")

    assert result.customer is None
    assert lookup_payload(result) == {"customer": None, "pendingMails": [], "pickedUpMails": []}


def test_lookup_blank_phone(db_env):
    assert LookupService().lookup("   ").customer is None


def test_lookup_trims_phone_and_splits_mails(db_env):
    customer = _seed()

    result = LookupService().lookup("  91234567 ")

    assert result.customer.id == customer.id
    assert [m.sender for m in result.pending_mails] == ["HSBC"]
    assert [m.sender for m in result.picked_up_mails] == ["CLP"]
    assert result.month_options == ["2026-10"]


def test_lookup_month_filter(db_env):
    _seed()
    svc = LookupService()

    september = svc.lookup("91234567", "2026-09")
    assert september.picked_up_mails == []
    assert september.picked_up_total == 1
    assert len(svc.lookup("91234567", "2026-10").picked_up_mails) == 1
    # pending mail is never filtered by month
    assert len(svc.lookup("91234567", "2026-09").pending_mails) == 1


def test_payload_shape(db_env):
    customer = _seed()

    payload = lookup_payload(LookupService().lookup("91234567"))

    assert payload["customer"] == {
        "id": customer.id,
        "customer_id": "C0001",
        "full_name": "陳大文",
        "phone": "91234567",
    }
    pending = payload["pendingMails"][0]
    assert pending["status"] == "待取"
    assert pending["pickup_time"] is None
    assert pending["photos"] is None
    assert pending["created_at"].endswith("+00:00")
    picked = payload["pickedUpMails"][0]
    assert picked["pickup_method"] == "速遞"
    assert picked["pickup_time"] == "2026-10-03T02:30:00+00:00"
