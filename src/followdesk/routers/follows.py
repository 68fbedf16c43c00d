"""Follow relationship endpoints.

Edges are directed: `POST /users/{id}/follow` makes user `id` follow the
user named in the body, and `DELETE /users/{id}/unfollow/{followingId}`
removes that edge again.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Path, status

from ..core.dependencies import get_follow_service
from ..core.logging import ContextLogger
from ..schemas.follows import FollowRequest, FollowResponse
from ..schemas.users import MessageResponse
from ..services.follows import FollowService

logger = ContextLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["follows"],
    responses={
        400: {"description": "Self-follow, duplicate edge or invalid IDs"},
        404: {"description": "User or follow relationship not found"},
        500: {"description": "Internal server error"},
    },
)


@router.post(
    "/{user_id}/follow",
    response_model=FollowResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Follow a user",
    description="Creates the edge user_id -> followingId",
)
async def follow_user(
    payload: FollowRequest,
    user_id: UUID = Path(..., description="Follower user ID"),
    service: FollowService = Depends(get_follow_service),
) -> FollowResponse:
    logger.info(
        "Processing follow_user request",
        extra={"user_id": str(user_id), "following_id": str(payload.following_id)},
    )
    follow = await service.follow(user_id, payload.following_id)
    return FollowResponse(message="Successfully followed user", follow=follow)


@router.delete(
    "/{user_id}/unfollow/{following_id}",
    response_model=MessageResponse,
    summary="Unfollow a user",
    description="Removes the edge user_id -> following_id",
)
async def unfollow_user(
    user_id: UUID = Path(..., description="Follower user ID"),
    following_id: UUID = Path(..., description="Followed user ID"),
    service: FollowService = Depends(get_follow_service),
) -> MessageResponse:
    logger.info(
        "Processing unfollow_user request",
        extra={"user_id": str(user_id), "following_id": str(following_id)},
    )
    await service.unfollow(user_id, following_id)
    return MessageResponse(message="Successfully unfollowed user")
