"""
Smoke tests for the SQLRepository against a temporary SQLite database.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from mailroom.db.models import Customer
from mailroom.db.session import get_session
from mailroom.domain.mail_status import PENDING, PICKED_UP
from mailroom.repositories.sql_repository import SQLRepository


def _customer(repo, name, phone):
    return repo.create_customer(full_name=name, phone=phone, email=None, notes=None, prefix="C")


def test_customer_ids_are_sequential(db_env):
    repo = SQLRepository()
    first = _customer(repo, "陳大文", "91234567")
    second = _customer(repo, "李小明", "92345678")

    assert first.customer_id == "C0001"
    assert second.customer_id == "C0002"
    assert repo.next_customer_id("C") == "C0003"


def test_next_customer_id_skips_gaps_and_foreign_ids(db_env):
    repo = SQLRepository()
    _customer(repo, "A", "1")
    second = _customer(repo, "B", "2")
    _customer(repo, "C", "3")
    repo.delete_customer(second.id)

    assert repo.next_customer_id("C") == "C0004"
    assert repo.next_customer_id("X") == "X0001"


def test_search_matches_name_phone_and_customer_id(db_env):
    repo = SQLRepository()
    alice = _customer(repo, "Alice Wong", "61110000")
    _customer(repo, "Bob Chan", "62220000")

    assert [c.id for c in repo.search_customers("alice")] == [alice.id]
    assert [c.id for c in repo.search_customers("6111")] == [alice.id]
    assert [c.id for c in repo.search_customers("C0001")] == [alice.id]
    assert repo.search_customers("   ") == []
    assert repo.search_customers("%") == []


def test_pickup_update_only_touches_pending(db_env):
    repo = SQLRepository()
    customer = _customer(repo, "陳大文", "91234567")
    mail = repo.create_mail(customer.id, "HSBC", None)
    now = datetime.now(timezone.utc)

    assert repo.mark_mail_picked_up(mail.id, "上門", now) is True
    assert repo.mark_mail_picked_up(mail.id, "速遞", now) is False

    stored = repo.get_mail(mail.id)
    assert stored.status == PICKED_UP
    assert stored.pickup_method == "上門"
    assert stored.pickup_time is not None


def test_delete_customer_removes_its_mails(db_env):
    repo = SQLRepository()
    customer = _customer(repo, "陳大文", "91234567")
    other = _customer(repo, "李小明", "92345678")
    repo.create_mail(customer.id, "HSBC", None)
    repo.create_mail(customer.id, "CLP", None)
    kept = repo.create_mail(other.id, "稅務局", None)

    assert repo.delete_customer(customer.id) == 2
    assert repo.get_customer(customer.id) is None
    assert [m.id for m, _ in repo.list_mails()] == [kept.id]


def test_counts_and_pending_customers(db_env):
    repo = SQLRepository()
    busy = _customer(repo, "Busy", "1")
    quiet = _customer(repo, "Quiet", "2")
    _customer(repo, "Nobody", "3")
    for sender in ("a", "b", "c"):
        repo.create_mail(busy.id, sender, None)
    picked = repo.create_mail(quiet.id, "d", None)
    repo.create_mail(quiet.id, "e", None)
    now = datetime.now(timezone.utc)
    repo.mark_mail_picked_up(picked.id, "上門", now)

    assert repo.count_pending() == 4
    assert repo.count_picked_up_between(now - timedelta(minutes=1), now + timedelta(minutes=1)) == 1
    assert repo.count_mails_created_between(now - timedelta(hours=1), now + timedelta(hours=1)) == 5
    ranked = [(c.full_name, n) for c, n in repo.customers_with_pending()]
    assert ranked == [("Busy", 3), ("Quiet", 1)]

    listed = {c.full_name: n for c, n in repo.list_customers_with_pending()}
    assert listed == {"Busy": 3, "Quiet": 1, "Nobody": 0}


def test_list_mails_filters_by_status_and_search(db_env):
    repo = SQLRepository()
    customer = _customer(repo, "陳大文", "91234567")
    hsbc = repo.create_mail(customer.id, "HSBC", None)
    repo.create_mail(customer.id, "CLP", None)
    repo.mark_mail_picked_up(hsbc.id, "上門", datetime.now(timezone.utc))

    pending = repo.list_mails(status=PENDING)
    assert [m.sender for m, _ in pending] == ["CLP"]
    by_sender = repo.list_mails(search="hsbc")
    assert [m.sender for m, _ in by_sender] == ["HSBC"]
    by_customer = repo.list_mails(search="陳大文")
    assert len(by_customer) == 2
    assert all(c.id == customer.id for _, c in by_customer)


def test_settings_are_seeded_once_and_updated(db_env):
    repo = SQLRepository()
    assert repo.ensure_setting("k", "v", "desc") is True
    assert repo.ensure_setting("k", "other", "desc") is False
    assert repo.get_setting("k").value == "v"

    assert repo.update_setting_value("k", "new") is True
    assert repo.update_setting_value("missing", "x") is False
    assert [s.key for s in repo.list_settings()] == ["k"]


def test_next_customer_id_past_four_digits(db_env):
    repo = SQLRepository()
    with get_session() as session:
        session.add(Customer(customer_id="C9999", full_name="A", phone="1"))
        session.commit()
    assert repo.next_customer_id("C") == "C10000"

    with get_session() as session:
        session.add(Customer(customer_id="C10000", full_name="B", phone="2"))
        session.commit()
    assert repo.next_customer_id("C") == "C10001"
