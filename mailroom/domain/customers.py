"""Domain helpers for customer identifiers and contact fields."""
from __future__ import annotations

CUSTOMER_ID_DIGITS = 4


def format_customer_id(prefix: str, sequence: int) -> str:
    """`C` + 7 -> `C0007`; sequences past 9999 simply grow wider."""
    return f"{prefix}{sequence:0{CUSTOMER_ID_DIGITS}d}"


def customer_id_sequence(value: str | None, prefix: str) -> int:
    """Numeric part of a generated customer id, 0 when it does not match."""
    raw = (value or "").strip()
    if not raw.startswith(prefix):
        return 0
    digits = raw[len(prefix):]
    if not digits.isdigit():
        return 0
    return int(digits)


def normalize_phone(value: str | None) -> str:
    return (value or "").strip()


def optional_text(value: str | None) -> str | None:
    """Blank form fields are stored as NULL."""
    cleaned = (value or "").strip()
    return cleaned or None
