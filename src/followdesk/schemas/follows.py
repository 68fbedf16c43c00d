"""Schema models for follow relationships."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FollowRequest(BaseModel):
    """Request body for making one user follow another."""

    following_id: UUID = Field(
        ..., alias="followingId", description="User to be followed"
    )
    model_config = ConfigDict(populate_by_name=True)


class FollowRecord(BaseModel):
    """A stored `user_follows` edge: follower_id follows following_id."""

    id: UUID | int | str
    follower_id: UUID
    following_id: UUID
    created_at: datetime | None = None
    model_config = ConfigDict(extra="ignore")


class FollowResponse(BaseModel):
    """Response returned after creating a follow edge."""

    message: str
    follow: FollowRecord
