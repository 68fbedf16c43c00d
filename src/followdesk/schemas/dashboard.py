"""Schema models for the owner dashboard."""

from pydantic import BaseModel, ConfigDict, Field


class RecentActivity(BaseModel):
    new_users: int = Field(..., alias="newUsers")
    new_connections: int = Field(..., alias="newConnections")
    model_config = ConfigDict(populate_by_name=True)


class DashboardStats(BaseModel):
    """Directory-wide totals shown on the owner dashboard.

    Attributes:
        total_users: Number of user records.
        active_users: Users whose status is ``active``.
        total_connections: Number of follow edges.
        avg_connections: Edges per user, rounded half up.
        recent_activity: Users and edges created in the last seven days.
    """

    total_users: int = Field(..., alias="totalUsers")
    active_users: int = Field(..., alias="activeUsers")
    total_connections: int = Field(..., alias="totalConnections")
    avg_connections: int = Field(..., alias="avgConnections")
    recent_activity: RecentActivity = Field(..., alias="recentActivity")
    model_config = ConfigDict(populate_by_name=True)
