"""SQLAlchemy models for customers, mails, settings and staff accounts."""
from __future__ import annotations

import uuid

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    JSON,
    func,
)
from sqlalchemy.orm import relationship

from mailroom.domain.mail_status import PENDING

from .session import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    email = Column(String(255), primary_key=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class UserSession(Base):
    __tablename__ = "sessions"

    token = Column(String(128), primary_key=True)
    user_email = Column(String(255), ForeignKey("users.email", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=_uuid)
    customer_id = Column(String(32), unique=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(64), unique=True, nullable=False)
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    mails = relationship("Mail", back_populates="customer")


class Mail(Base):
    __tablename__ = "mails"
    __table_args__ = (Index("ix_mails_customer_status", "customer_id", "status"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False)
    sender = Column(String(255), nullable=False)
    photos = Column(JSON, nullable=True)
    status = Column(String(8), default=PENDING, nullable=False)
    pickup_time = Column(DateTime(timezone=True), nullable=True)
    pickup_method = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    customer = relationship("Customer", back_populates="mails")


class Setting(Base):
    __tablename__ = "settings"

    id = Column(String(36), primary_key=True, default=_uuid)
    key = Column(String(128), unique=True, nullable=False)
    value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
