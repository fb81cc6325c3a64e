from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from uuid import UUID

from herdbook.application.errors import QuotaExceeded

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = 0.9


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass(slots=True)
class QuotaUsage:
    day: date
    writes: int = 0


class WriteQuotaTracker:
    """Daily document-write budget per tenant.

    Usage resets when the UTC day changes, matching the billing day of the
    hosted document store.
    """

    def __init__(self, daily_limit: int, clock: Callable[[], date] = _utc_today) -> None:
        self.daily_limit = daily_limit
        self._clock = clock
        self._usage: dict[UUID, QuotaUsage] = {}

    def usage(self, tenant_id: UUID) -> QuotaUsage:
        today = self._clock()
        current = self._usage.get(tenant_id)
        if current is None or current.day != today:
            current = QuotaUsage(day=today)
            self._usage[tenant_id] = current
        return current

    def remaining(self, tenant_id: UUID) -> int:
        return max(self.daily_limit - self.usage(tenant_id).writes, 0)

    def ensure_available(self, tenant_id: UUID, estimated_writes: int) -> None:
        remaining = self.remaining(tenant_id)
        if estimated_writes > remaining:
            raise QuotaExceeded(
                "Daily write quota exceeded",
                details={
                    "estimated_writes": estimated_writes,
                    "remaining": remaining,
                    "daily_limit": self.daily_limit,
                },
            )

    def record(self, tenant_id: UUID, writes: int) -> None:
        if writes <= 0:
            return
        usage = self.usage(tenant_id)
        before = usage.writes
        usage.writes += writes
        threshold = self.daily_limit * WARNING_THRESHOLD
        if before < threshold <= usage.writes:
            logger.warning(
                "Tenant %s used %d of %d daily writes", tenant_id, usage.writes, self.daily_limit
            )
