"""Directory-wide statistics for the owner dashboard."""

import asyncio
import math
from datetime import UTC, datetime, timedelta

from ..core.logging import ContextLogger
from ..schemas.dashboard import DashboardStats, RecentActivity
from .database import FOLLOWS_TABLE, USERS_TABLE, SupabaseRepository

logger = ContextLogger(__name__)

RECENT_WINDOW = timedelta(days=7)


def average_connections(total_connections: int, total_users: int) -> int:
    """Edges per user rounded half up; 0 for an empty directory."""
    if total_users <= 0:
        return 0
    return math.floor(total_connections / total_users + 0.5)


class DashboardService(SupabaseRepository):
    """Aggregate counts over `users` and `user_follows`."""

    async def get_stats(self, now: datetime | None = None) -> DashboardStats:
        since = ((now or datetime.now(UTC)) - RECENT_WINDOW).isoformat()

        (
            total_users,
            active_users,
            total_connections,
            new_users,
            new_connections,
        ) = await asyncio.gather(
            self.count(
                self.table(USERS_TABLE).select("id", count="exact"), "count_users"
            ),
            self.count(
                self.table(USERS_TABLE)
                .select("id", count="exact")
                .eq("status", "active"),
                "count_active_users",
            ),
            self.count(
                self.table(FOLLOWS_TABLE).select("id", count="exact"),
                "count_connections",
            ),
            self.count(
                self.table(USERS_TABLE)
                .select("id", count="exact")
                .gte("created_at", since),
                "count_new_users",
            ),
            self.count(
                self.table(FOLLOWS_TABLE)
                .select("id", count="exact")
                .gte("created_at", since),
                "count_new_connections",
            ),
        )

        logger.debug(
            "Dashboard stats computed",
            extra={"total_users": total_users, "total_connections": total_connections},
        )

        return DashboardStats(
            total_users=total_users,
            active_users=active_users,
            total_connections=total_connections,
            avg_connections=average_connections(total_connections, total_users),
            recent_activity=RecentActivity(
                new_users=new_users, new_connections=new_connections
            ),
        )
