"""User management API endpoints for the owner directory.

This module provides RESTful API endpoints for managing directory users:

Core Features:
- Paginated listing with free-text search
- Unpaginated search with status filter and sorting
- Single-user detail including followers and following
- Create, update, delete and bulk delete

Every returned user carries a computed `age` and live `followers_count` /
`following_count`.

Example Usage:
    List users:
        GET /api/owner/users?page=2&limit=20&search=smith

    Search users:
        GET /api/owner/users/search?q=smith&status=active&sortBy=name&sortOrder=asc

    Create user:
        POST /api/owner/users
        {
            "name": "Ada Lovelace",
            "email": "ada@example.com",
            "phone": "+44 20 7946 0000",
            "date_of_birth": "1990-12-10"
        }
"""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from ..core.dependencies import get_user_service
from ..core.logging import ContextLogger
from ..schemas.users import (
    BulkDeleteRequest,
    MessageResponse,
    SortField,
    UserCreate,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from ..services.users import UserService

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={
        400: {
            "description": "Validation error in request parameters or body",
            "content": {
                "application/json": {
                    "example": {
                        "error": True,
                        "message": "Validation failed",
                        "error_code": "VALIDATION_ERROR",
                    }
                }
            },
        },
        404: {
            "description": "User not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": True,
                        "message": "User not found",
                        "error_code": "UserNotFoundError",
                    }
                }
            },
        },
        500: {
            "description": "Internal server error",
            "content": {
                "application/json": {
                    "example": {
                        "error": True,
                        "message": "Internal server error occurred",
                        "error_code": "INTERNAL_SERVER_ERROR",
                    }
                }
            },
        },
    },
)

logger = ContextLogger(__name__)

MAX_PAGE_SIZE = 100


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
    description="Returns a page of users, newest first, with optional search",
)
async def list_users(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(
        10, ge=1, description=f"Users per page, capped at {MAX_PAGE_SIZE}"
    ),
    search: str = Query("", description="Match on name, email or phone"),
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    limit = min(limit, MAX_PAGE_SIZE)
    logger.info(
        "Processing list_users request",
        extra={"page": page, "limit": limit, "search": search or None},
    )
    async with logger.track_time("list_users"):
        return await service.list_users(page=page, limit=limit, search=search or None)


@router.get(
    "/search",
    response_model=list[UserResponse],
    summary="Search users",
    description="Returns every matching user, filtered by status and sorted",
)
async def search_users(
    q: Optional[str] = Query(None, description="Match on name, email or phone"),
    status_filter: Optional[Literal["active", "inactive", "all"]] = Query(
        None, alias="status", description="Status filter"
    ),
    sort_by: SortField = Query("created_at", alias="sortBy", description="Sort column"),
    sort_order: Literal["asc", "desc"] = Query(
        "desc", alias="sortOrder", description="Sort direction"
    ),
    service: UserService = Depends(get_user_service),
) -> list[UserResponse]:
    logger.info(
        "Processing search_users request",
        extra={"q": q, "status": status_filter, "sort_by": sort_by},
    )
    async with logger.track_time("search_users"):
        return await service.search_users(
            q=q, status=status_filter, sort_by=sort_by, sort_order=sort_order
        )


@router.post(
    "/bulk-delete",
    response_model=MessageResponse,
    summary="Delete several users",
    description="Deletes the given users and every follow edge touching them",
)
async def bulk_delete_users(
    payload: BulkDeleteRequest,
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    logger.info(
        "Processing bulk_delete_users request",
        extra={"count": len(payload.user_ids)},
    )
    deleted = await service.bulk_delete_users(payload.user_ids)
    return MessageResponse(message=f"{deleted} users deleted successfully")


@router.get(
    "/{user_id}",
    response_model=UserDetailResponse,
    summary="Get user details",
    description="Returns a user with counts, followers and following",
)
async def get_user(
    user_id: UUID = Path(..., description="User ID"),
    service: UserService = Depends(get_user_service),
) -> UserDetailResponse:
    logger.info("Processing get_user request", extra={"user_id": str(user_id)})
    async with logger.track_time("get_user"):
        return await service.get_user(user_id)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create user",
)
async def create_user(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    logger.info("Processing create_user request", extra={"email": payload.email})
    return await service.create_user(payload)


@router.put(
    "/{user_id}",
    response_model=UserResponse,
    summary="Update user",
    description="Applies a partial update to a user",
)
async def update_user(
    payload: UserUpdate,
    user_id: UUID = Path(..., description="User ID"),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    logger.info(
        "Processing update_user request",
        extra={"user_id": str(user_id), "fields": sorted(payload.model_fields_set)},
    )
    return await service.update_user(user_id, payload)


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete user",
    description="Deletes a user and every follow edge touching them",
)
async def delete_user(
    user_id: UUID = Path(..., description="User ID"),
    service: UserService = Depends(get_user_service),
) -> MessageResponse:
    logger.info("Processing delete_user request", extra={"user_id": str(user_id)})
    await service.delete_user(user_id)
    return MessageResponse(message="User deleted successfully")
