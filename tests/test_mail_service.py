from __future__ import annotations

import os

import pytest

from mailroom.domain.mail_status import PENDING, PICKED_UP
from mailroom.services.customer_service import CustomerForm, CustomerService
from mailroom.services.mail_service import (
    InvalidTransitionError,
    MailNotFoundError,
    MailService,
    MailValidationError,
)
from mailroom.services.photo_storage import PhotoError, PhotoUpload, local_path_for


@pytest.fixture()
def customer(db_env):
    return CustomerService().create(CustomerForm(full_name="陳大文", phone="91234567"))


def test_create_starts_pending(customer):
    mail = MailService().create(customer.id, "  HSBC  ")

    assert mail.status == PENDING
    assert mail.sender == "HSBC"
    assert mail.photos is None
    assert mail.pickup_time is None
    assert mail.pickup_method is None


@pytest.mark.parametrize(
    "customer_pk, sender, message",
    [("", "HSBC", "請選擇客戶"), ("missing", "HSBC", "請選擇客戶"), (None, "HSBC", "請選擇客戶")],
)
def test_create_requires_existing_customer(db_env, customer_pk, sender, message):
    with pytest.raises(MailValidationError) as exc:
        MailService().create(customer_pk, sender)
    assert exc.value.message == message


def test_create_requires_sender(customer):
    with pytest.raises(MailValidationError) as exc:
        MailService().create(customer.id, "   ")
    assert exc.value.message == "請輸入發件人"


def test_create_stores_photos(customer, make_image):
    uploads = [
        PhotoUpload("front.png", "image/png", make_image()),
        PhotoUpload("back.png", "image/png", make_image(color=(0, 0, 255))),
    ]
    mail = MailService().create(customer.id, "稅務局", uploads)

    assert len(mail.photos) == 2
    for url in mail.photos:
        assert url.startswith("/static/uploads/mails/")
        assert os.path.exists(local_path_for(url))


def test_create_with_invalid_photo_saves_nothing(customer):
    svc = MailService()
    with pytest.raises(PhotoError):
        svc.create(customer.id, "HSBC", [PhotoUpload("notes.txt", "text/plain", b"hello")])
    assert svc.list_mails() == []


def test_pick_up_is_one_way(customer):
    svc = MailService()
    mail = svc.create(customer.id, "HSBC")

    picked = svc.pick_up(mail.id, "速遞")
    assert picked.status == PICKED_UP
    assert picked.pickup_method == "速遞"
    assert picked.pickup_time is not None

    with pytest.raises(InvalidTransitionError):
        svc.pick_up(mail.id)
    assert svc.get(mail.id).pickup_method == "速遞"


def test_pick_up_defaults_to_in_person_and_rejects_unknown_methods(customer):
    svc = MailService()
    first = svc.create(customer.id, "A")
    second = svc.create(customer.id, "B")

    assert svc.pick_up(first.id, "").pickup_method == "上門"
    with pytest.raises(MailValidationError):
        svc.pick_up(second.id, "drone")
    assert svc.get(second.id).status == PENDING


def test_pick_up_missing_mail(db_env):
    with pytest.raises(MailNotFoundError):
        MailService().pick_up("missing")


def test_pick_up_all_only_counts_pending(customer):
    svc = MailService()
    done = svc.create(customer.id, "A")
    svc.create(customer.id, "B")
    svc.create(customer.id, "C")
    svc.pick_up(done.id)

    assert svc.pick_up_all(customer.id, "速遞") == 2
    assert svc.pick_up_all(customer.id, "速遞") == 0
    methods = sorted(item.mail.pickup_method for item in svc.list_mails())
    assert methods == ["上門", "速遞", "速遞"]


def test_pick_up_all_unknown_customer(db_env):
    with pytest.raises(MailValidationError):
        MailService().pick_up_all("missing")


def test_list_mails_status_filter(customer):
    svc = MailService()
    picked = svc.create(customer.id, "A")
    svc.create(customer.id, "B")
    svc.pick_up(picked.id)

    assert [i.mail.sender for i in svc.list_mails(status=PENDING)] == ["B"]
    assert [i.mail.sender for i in svc.list_mails(status=PICKED_UP)] == ["A"]
    assert len(svc.list_mails(status="all")) == 2
    assert len(svc.list_mails(status="bogus")) == 2
    assert all(i.customer.id == customer.id for i in svc.list_mails())


def test_delete_removes_photo_files(customer, make_image):
    svc = MailService()
    mail = svc.create(customer.id, "HSBC", [PhotoUpload("a.png", "image/png", make_image())])
    path = local_path_for(mail.photos[0])

    svc.delete(mail.id)

    assert not os.path.exists(path)
    with pytest.raises(MailNotFoundError):
        svc.get(mail.id)
    with pytest.raises(MailNotFoundError):
        svc.delete(mail.id)
