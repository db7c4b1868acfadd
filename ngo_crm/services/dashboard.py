"""Dashboard figures"""

from datetime import datetime, timedelta, timezone
from typing import List, NamedTuple, Optional

from ngo_crm.models import Contract, Person
from ngo_crm.services.contracts import is_active
from ngo_crm.utils.dates import parse_timestamp

RECENT_COUNT = 5
RECENT_UPDATE_DAYS = 7


class DashboardStats(NamedTuple):
    total_persons: int
    with_email: int
    with_phone: int
    incomplete: int
    active_contracts: int
    updated_this_week: int
    recent_persons: List[Person]


def build_dashboard(
    persons: List[Person],
    contracts: List[Contract],
    now: Optional[datetime] = None,
) -> DashboardStats:
    now = now or datetime.now(timezone.utc)
    week_ago = now - timedelta(days=RECENT_UPDATE_DAYS)
    recent = sorted(persons, key=lambda p: p.created_at or "", reverse=True)[:RECENT_COUNT]
    updated = [
        p for p in persons
        if (parse_timestamp(p.updated_at) or datetime.min.replace(tzinfo=timezone.utc)) > week_ago
    ]
    return DashboardStats(
        total_persons=len(persons),
        with_email=sum(1 for p in persons if p.email),
        with_phone=sum(1 for p in persons if p.phone),
        incomplete=sum(1 for p in persons if p.completeness_problems),
        active_contracts=sum(1 for c in contracts if is_active(c, now.date())),
        updated_this_week=len(updated),
        recent_persons=recent,
    )
