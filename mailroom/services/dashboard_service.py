"""Overview numbers for the staff dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from mailroom.core.utils import current_month_bounds, day_bounds, utcnow
from mailroom.repositories.sql_repository import SQLRepository
from mailroom.services.customer_service import CustomerSummary


@dataclass
class DashboardStats:
    today_new: int
    month_picked_up: int
    total_pending: int
    pending_customers: list[CustomerSummary]
    generated_at: datetime


@dataclass
class DashboardService:
    repository: SQLRepository = field(default_factory=SQLRepository)

    def stats(self, now: datetime | None = None) -> DashboardStats:
        now = now or utcnow()
        day_start, day_end = day_bounds(now)
        month_start, month_end = current_month_bounds(now)
        return DashboardStats(
            today_new=self.repository.count_mails_created_between(day_start, day_end),
            month_picked_up=self.repository.count_picked_up_between(month_start, month_end),
            total_pending=self.repository.count_pending(),
            pending_customers=[
                CustomerSummary(customer=c, pending_count=n) for c, n in self.repository.customers_with_pending()
            ],
            generated_at=now,
        )
