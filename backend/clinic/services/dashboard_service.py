import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from clinic.core.config import APP_TZ
from clinic.core.interfaces.repository_interface import StorageInterface
from clinic.utils.time_utils import as_utc, utcnow

logger = logging.getLogger(__name__)

# Payments that never brought money in
EXCLUDED_REVENUE_STATUSES = ("failed", "refunded")


def local_day_bounds(now: datetime) -> Tuple[datetime, datetime]:
    """Start and end (UTC) of the studio-local calendar day containing `now`."""
    local = as_utc(now).astimezone(APP_TZ)
    start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    return as_utc(start), as_utc(start + timedelta(days=1))


def local_month_start(now: datetime) -> datetime:
    local = as_utc(now).astimezone(APP_TZ)
    return as_utc(local.replace(day=1, hour=0, minute=0, second=0, microsecond=0))


class DashboardService:
    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def stats(self, actor_id: Optional[str], now: Optional[datetime] = None) -> Dict[str, Any]:
        """Headline numbers for the actor's own clients and students."""
        now = now or utcnow()
        client_ids = {c.id for c in self.storage.clients.list_all(owner_id=actor_id)}
        student_ids = {s.id for s in self.storage.students.list_all(owner_id=actor_id)}

        day_start, day_end = local_day_bounds(now)
        todays_bookings = sum(
            1
            for b in self.storage.bookings.list_all()
            if b.client_id in client_ids
            and b.scheduled_date is not None
            and day_start <= as_utc(b.scheduled_date) < day_end
        )

        month_start = local_month_start(now)
        monthly_revenue = sum(
            (
                p.amount
                for p in self.storage.payments.list_all()
                if p.client_id in client_ids
                and p.status not in EXCLUDED_REVENUE_STATUSES
                and as_utc(p.created_at) >= month_start
            ),
            Decimal("0"),
        )

        logger.debug(
            "Dashboard stats computed",
            extra={"context": {"actor_id": actor_id, "clients": len(client_ids)}},
        )
        return {
            "todaysBookings": todays_bookings,
            "monthlyRevenue": monthly_revenue,
            "activeStudents": len(student_ids),
        }
