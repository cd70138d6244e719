"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import and_, delete, func, or_, select, update

from mailroom.db.models import Customer, Mail, Setting, User, UserSession
from mailroom.db.session import get_session
from mailroom.domain.customers import customer_id_sequence, format_customer_id
from mailroom.domain.mail_status import PENDING, PICKED_UP


def _contains(column, term: str):
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    # -------------------------- users --------------------------
    def get_user(self, email: str) -> Optional[User]:
        with get_session() as session:
            return session.get(User, email)

    def create_user(self, email: str, password_hash: str) -> User:
        now = datetime.now(timezone.utc)
        entity = User(email=email, password_hash=password_hash, created_at=now, updated_at=now)
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def update_user_password(self, email: str, password_hash: str) -> None:
        with get_session() as session:
            stmt = (
                update(User)
                .where(User.email == email)
                .values(password_hash=password_hash, updated_at=datetime.now(timezone.utc))
            )
            session.execute(stmt)
            session.commit()

    def delete_user_sessions(self, email: str) -> None:
        with get_session() as session:
            session.execute(delete(UserSession).where(UserSession.user_email == email))
            session.commit()

    # -------------------------- customers --------------------------
    def next_customer_id(self, prefix: str) -> str:
        """Prefix + highest existing sequence + 1.

        Generated ids are zero padded and only ever grow wider, so the longest,
        then lexically greatest, id carries the highest sequence.
        """
        stmt = (
            select(Customer.customer_id)
            .where(Customer.customer_id.startswith(prefix, autoescape=True))
            .order_by(func.length(Customer.customer_id).desc(), Customer.customer_id.desc())
            .limit(1)
        )
        with get_session() as session:
            highest = session.execute(stmt).scalar_one_or_none()
        return format_customer_id(prefix, customer_id_sequence(highest, prefix) + 1)

    def create_customer(
        self,
        *,
        full_name: str,
        phone: str,
        email: str | None,
        notes: str | None,
        prefix: str,
    ) -> Customer:
        entity = Customer(
            customer_id=self.next_customer_id(prefix),
            full_name=full_name,
            phone=phone,
            email=email,
            notes=notes,
            created_at=datetime.now(timezone.utc),
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def get_customer(self, customer_pk: str) -> Optional[Customer]:
        with get_session() as session:
            return session.get(Customer, customer_pk)

    def get_customer_by_phone(self, phone: str) -> Optional[Customer]:
        with get_session() as session:
            stmt = select(Customer).where(Customer.phone == phone)
            return session.execute(stmt).scalar_one_or_none()

    def list_customers_with_pending(self, search: str | None = None) -> list[tuple[Customer, int]]:
        """All customers, newest first, each with its pending mail count."""
        pending = func.count(Mail.id)
        stmt = (
            select(Customer, pending)
            .outerjoin(Mail, and_(Mail.customer_id == Customer.id, Mail.status == PENDING))
            .group_by(Customer.id)
            .order_by(Customer.created_at.desc())
        )
        term = (search or "").strip()
        if term:
            stmt = stmt.where(
                or_(
                    _contains(Customer.full_name, term),
                    _contains(Customer.phone, term),
                    _contains(Customer.customer_id, term),
                )
            )
        with get_session() as session:
            return [(customer, int(count or 0)) for customer, count in session.execute(stmt).all()]

    def search_customers(self, query: str, limit: int = 10) -> list[Customer]:
        term = (query or "").strip()
        if not term:
            return []
        stmt = (
            select(Customer)
            .where(
                or_(
                    _contains(Customer.full_name, term),
                    _contains(Customer.phone, term),
                    _contains(Customer.customer_id, term),
                )
            )
            .order_by(Customer.full_name)
            .limit(limit)
        )
        with get_session() as session:
            return session.execute(stmt).scalars().all()

    def update_customer(
        self,
        customer_pk: str,
        *,
        full_name: str,
        phone: str,
        email: str | None,
        notes: str | None,
    ) -> bool:
        with get_session() as session:
            stmt = (
                update(Customer)
                .where(Customer.id == customer_pk)
                .values(full_name=full_name, phone=phone, email=email, notes=notes)
            )
            result = session.execute(stmt)
            session.commit()
            return bool(result.rowcount)

    def delete_customer(self, customer_pk: str) -> int:
        """Delete the customer's mails, then the customer. Returns mails removed."""
        with get_session() as session:
            removed = session.execute(delete(Mail).where(Mail.customer_id == customer_pk))
            session.execute(delete(Customer).where(Customer.id == customer_pk))
            session.commit()
            return int(removed.rowcount or 0)

    # -------------------------- mails --------------------------
    def create_mail(self, customer_pk: str, sender: str, photos: list[str] | None) -> Mail:
        entity = Mail(
            customer_id=customer_pk,
            sender=sender,
            photos=photos or None,
            status=PENDING,
            created_at=datetime.now(timezone.utc),
        )
        with get_session() as session:
            session.add(entity)
            session.commit()
            session.refresh(entity)
            return entity

    def get_mail(self, mail_pk: str) -> Optional[Mail]:
        with get_session() as session:
            return session.get(Mail, mail_pk)

    def list_mails(self, search: str | None = None, status: str | None = None) -> list[tuple[Mail, Optional[Customer]]]:
        stmt = (
            select(Mail, Customer)
            .outerjoin(Customer, Customer.id == Mail.customer_id)
            .order_by(Mail.created_at.desc())
        )
        if status:
            stmt = stmt.where(Mail.status == status)
        term = (search or "").strip()
        if term:
            stmt = stmt.where(
                or_(
                    _contains(Mail.sender, term),
                    _contains(Customer.full_name, term),
                    _contains(Customer.phone, term),
                )
            )
        with get_session() as session:
            return [(mail, customer) for mail, customer in session.execute(stmt).all()]

    def list_customer_mails(
        self,
        customer_pk: str,
        *,
        status: str | None = None,
        picked_from: datetime | None = None,
        picked_until: datetime | None = None,
    ) -> list[Mail]:
        stmt = select(Mail).where(Mail.customer_id == customer_pk).order_by(Mail.created_at.desc())
        if status:
            stmt = stmt.where(Mail.status == status)
        if picked_from is not None:
            stmt = stmt.where(Mail.pickup_time >= picked_from)
        if picked_until is not None:
            stmt = stmt.where(Mail.pickup_time < picked_until)
        with get_session() as session:
            return session.execute(stmt).scalars().all()

    def count_customer_mails(self, customer_pk: str, status: str) -> int:
        stmt = select(func.count(Mail.id)).where(Mail.customer_id == customer_pk, Mail.status == status)
        with get_session() as session:
            return int(session.execute(stmt).scalar_one() or 0)

    def list_pickup_times(self, customer_pk: str) -> list[datetime]:
        stmt = (
            select(Mail.pickup_time)
            .where(Mail.customer_id == customer_pk, Mail.status == PICKED_UP, Mail.pickup_time.is_not(None))
        )
        with get_session() as session:
            return session.execute(stmt).scalars().all()

    def mark_mail_picked_up(self, mail_pk: str, method: str, when: datetime) -> bool:
        """Pending -> picked up for one mail; False when it was not pending."""
        with get_session() as session:
            stmt = (
                update(Mail)
                .where(Mail.id == mail_pk, Mail.status == PENDING)
                .values(status=PICKED_UP, pickup_time=when, pickup_method=method)
            )
            result = session.execute(stmt)
            session.commit()
            return bool(result.rowcount)

    def mark_customer_mails_picked_up(self, customer_pk: str, method: str, when: datetime) -> int:
        with get_session() as session:
            stmt = (
                update(Mail)
                .where(Mail.customer_id == customer_pk, Mail.status == PENDING)
                .values(status=PICKED_UP, pickup_time=when, pickup_method=method)
            )
            result = session.execute(stmt)
            session.commit()
            return int(result.rowcount or 0)

    def delete_mail(self, mail_pk: str) -> Optional[list[str]]:
        """Delete one mail; returns its photo URLs, None when it did not exist."""
        with get_session() as session:
            entity = session.get(Mail, mail_pk)
            if not entity:
                return None
            photos = list(entity.photos or [])
            session.delete(entity)
            session.commit()
            return photos

    # -------------------------- dashboard --------------------------
    def count_mails_created_between(self, start: datetime, end: datetime) -> int:
        stmt = select(func.count(Mail.id)).where(Mail.created_at >= start, Mail.created_at < end)
        with get_session() as session:
            return int(session.execute(stmt).scalar_one() or 0)

    def count_picked_up_between(self, start: datetime, end: datetime) -> int:
        stmt = select(func.count(Mail.id)).where(
            Mail.status == PICKED_UP,
            Mail.pickup_time >= start,
            Mail.pickup_time < end,
        )
        with get_session() as session:
            return int(session.execute(stmt).scalar_one() or 0)

    def count_pending(self) -> int:
        stmt = select(func.count(Mail.id)).where(Mail.status == PENDING)
        with get_session() as session:
            return int(session.execute(stmt).scalar_one() or 0)

    def customers_with_pending(self) -> list[tuple[Customer, int]]:
        """Customers holding pending mail, largest pile first."""
        pending = func.count(Mail.id)
        stmt = (
            select(Customer, pending)
            .join(Mail, Mail.customer_id == Customer.id)
            .where(Mail.status == PENDING)
            .group_by(Customer.id)
            .order_by(pending.desc(), Customer.customer_id)
        )
        with get_session() as session:
            return [(customer, int(count)) for customer, count in session.execute(stmt).all()]

    # -------------------------- settings --------------------------
    def list_settings(self) -> list[Setting]:
        with get_session() as session:
            return session.execute(select(Setting).order_by(Setting.key)).scalars().all()

    def get_setting(self, key: str) -> Optional[Setting]:
        with get_session() as session:
            stmt = select(Setting).where(Setting.key == key)
            return session.execute(stmt).scalar_one_or_none()

    def update_setting_value(self, key: str, value: str) -> bool:
        with get_session() as session:
            stmt = (
                update(Setting)
                .where(Setting.key == key)
                .values(value=value, updated_at=datetime.now(timezone.utc))
            )
            result = session.execute(stmt)
            session.commit()
            return bool(result.rowcount)

    def ensure_setting(self, key: str, value: str | None, description: str | None) -> bool:
        """Insert a setting row when the key is missing. Returns True if created."""
        with get_session() as session:
            exists = session.execute(select(Setting.id).where(Setting.key == key).limit(1)).first()
            if exists:
                return False
            session.add(
                Setting(key=key, value=value, description=description, updated_at=datetime.now(timezone.utc))
            )
            session.commit()
            return True
