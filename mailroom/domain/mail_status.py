"""Mail status labels and the pickup transition rule."""
from __future__ import annotations

PENDING = "待取"
PICKED_UP = "已取"
STATUSES = (PENDING, PICKED_UP)

STATUS_FILTER_ALL = "all"

PICKUP_IN_PERSON = "上門"
PICKUP_COURIER = "速遞"
PICKUP_METHODS = (PICKUP_IN_PERSON, PICKUP_COURIER)
DEFAULT_PICKUP_METHOD = PICKUP_IN_PERSON


def can_pick_up(status: str | None) -> bool:
    """Only pending mail can move to picked up; the transition is one-way."""
    return status == PENDING


def normalize_status_filter(value: str | None) -> str:
    candidate = (value or "").strip()
    if candidate in STATUSES:
        return candidate
    return STATUS_FILTER_ALL


def normalize_pickup_method(value: str | None) -> str | None:
    candidate = (value or "").strip()
    if not candidate:
        return DEFAULT_PICKUP_METHOD
    if candidate in PICKUP_METHODS:
        return candidate
    return None
