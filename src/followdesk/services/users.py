"""Service module for handling user-related operations.

This module provides a UserService class that encapsulates the business logic
for the owner's user directory, including:

- Paginated and searchable user listings
- Single-user lookups with follower and following details
- Creating, updating and deleting users, one at a time or in bulk

Every user handed back is shaped as a `UserResponse`: the stored row plus a
computed age and live follower/following counts obtained from FollowService.
"""

import asyncio
import math
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from ..core.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    EmptySelectionError,
    UserNotFoundError,
)
from ..core.logging import ContextLogger
from ..schemas.users import (
    PaginationMeta,
    SortField,
    UserCreate,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from .database import (
    USERS_TABLE,
    SupabaseRepository,
    ilike_any,
    is_unique_violation,
)
from .follows import FollowService

logger = ContextLogger(__name__)

USER_COLUMNS = (
    "id, name, email, phone, date_of_birth, profile_image_url, status, "
    "unit_number, created_at, updated_at"
)
SEARCH_COLUMNS = ["name", "email", "phone"]


def build_pagination(page: int, limit: int, total: int) -> PaginationMeta:
    """Compute page bookkeeping for a listing of `total` rows."""
    total_pages = math.ceil(total / limit) if limit else 0
    return PaginationMeta(
        current_page=page,
        total_pages=total_pages,
        total=total,
        limit=limit,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


class UserService(SupabaseRepository):
    """Business logic for the `users` table.

    Attributes:
        client: Supabase client shared with the follow service.
        follows: FollowService used for counts and edge cleanup.
    """

    def __init__(self, client: Any, follows: FollowService | None = None) -> None:
        super().__init__(client)
        self.follows = follows or FollowService(client)

    async def _with_counts(self, row: dict[str, Any]) -> UserResponse:
        followers_count, following_count = await asyncio.gather(
            self.follows.count_followers(row["id"]),
            self.follows.count_following(row["id"]),
        )
        return UserResponse.model_validate(
            {
                **row,
                "followers_count": followers_count,
                "following_count": following_count,
            }
        )

    async def _shape_rows(self, rows: list[dict[str, Any]]) -> list[UserResponse]:
        return list(await asyncio.gather(*(self._with_counts(row) for row in rows)))

    async def _fetch_row(self, user_id: UUID | str) -> dict[str, Any] | None:
        query = self.table(USERS_TABLE).select("*").eq("id", str(user_id)).limit(1)
        response = await self.execute(query, "get_user")
        return response.data[0] if response.data else None

    async def _email_taken(
        self, email: str, exclude_id: UUID | str | None = None
    ) -> bool:
        query = self.table(USERS_TABLE).select("id").eq("email", email)
        if exclude_id is not None:
            query = query.neq("id", str(exclude_id))
        response = await self.execute(query.limit(1), "find_user_by_email")
        return bool(response.data)

    async def list_users(
        self, page: int = 1, limit: int = 10, search: str | None = None
    ) -> UserListResponse:
        """Return one page of users, newest first.

        Args:
            page: 1-based page number.
            limit: Page size.
            search: Optional case-insensitive match on name, email or phone.
        """
        offset = (page - 1) * limit
        query = self.table(USERS_TABLE).select(USER_COLUMNS, count="exact")
        if search:
            query = query.or_(ilike_any(SEARCH_COLUMNS, search))
        query = query.order("created_at", desc=True).range(offset, offset + limit - 1)

        response = await self.execute(query, "list_users")
        total = response.count or 0
        users = await self._shape_rows(response.data or [])

        return UserListResponse(
            data=users, pagination=build_pagination(page, limit, total)
        )

    async def search_users(
        self,
        q: str | None = None,
        status: str | None = None,
        sort_by: SortField = "created_at",
        sort_order: str = "desc",
    ) -> list[UserResponse]:
        """Return every user matching the filters, without pagination."""
        query = self.table(USERS_TABLE).select(USER_COLUMNS)
        if q:
            query = query.or_(ilike_any(SEARCH_COLUMNS, q))
        if status and status != "all":
            query = query.eq("status", status)
        query = query.order(sort_by, desc=sort_order != "asc")

        response = await self.execute(query, "search_users")
        return await self._shape_rows(response.data or [])

    async def get_user(self, user_id: UUID | str) -> UserDetailResponse:
        """Return a user with counts and both sides of their follow edges.

        Raises:
            UserNotFoundError: If no user has this id.
        """
        row = await self._fetch_row(user_id)
        if row is None:
            raise UserNotFoundError("User not found", details={"user_id": str(user_id)})

        followers, following = await asyncio.gather(
            self.follows.list_followers(user_id),
            self.follows.list_following(user_id),
        )
        return UserDetailResponse.model_validate(
            {
                **row,
                "followers": followers,
                "following": following,
                "followers_count": len(followers),
                "following_count": len(following),
            }
        )

    async def create_user(self, payload: UserCreate) -> UserResponse:
        """Insert a new user.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """
        if await self._email_taken(payload.email):
            raise DuplicateEmailError("User with this email already exists")

        record = payload.model_dump(mode="json")
        try:
            response = await self.execute(
                self.table(USERS_TABLE).insert(record), "create_user"
            )
        except DatabaseError as e:
            if is_unique_violation(e):
                raise DuplicateEmailError("User with this email already exists") from e
            raise
        created = response.data[0]

        logger.info("User created", extra={"user_id": created.get("id")})
        return UserResponse.model_validate(
            {**created, "followers_count": 0, "following_count": 0}
        )

    async def update_user(self, user_id: UUID | str, payload: UserUpdate) -> UserResponse:
        """Apply a partial update and stamp `updated_at`.

        Raises:
            DuplicateEmailError: If another user already owns the new email.
            UserNotFoundError: If no user has this id.
        """
        updates = payload.model_dump(mode="json", exclude_unset=True)
        if updates.get("email") and await self._email_taken(
            updates["email"], exclude_id=user_id
        ):
            raise DuplicateEmailError("Email already in use by another user")

        updates["updated_at"] = datetime.now(UTC).isoformat()
        query = self.table(USERS_TABLE).update(updates).eq("id", str(user_id))
        try:
            response = await self.execute(query, "update_user")
        except DatabaseError as e:
            if is_unique_violation(e):
                raise DuplicateEmailError("Email already in use by another user") from e
            raise
        if not response.data:
            raise UserNotFoundError("User not found", details={"user_id": str(user_id)})

        logger.info(
            "User updated",
            extra={"user_id": str(user_id), "fields": sorted(updates)},
        )
        return await self._with_counts(response.data[0])

    async def delete_user(self, user_id: UUID | str) -> None:
        """Delete a user and every follow edge touching them.

        Raises:
            UserNotFoundError: If no user has this id.
        """
        query = self.table(USERS_TABLE).select("id").eq("id", str(user_id)).limit(1)
        response = await self.execute(query, "find_user")
        if not response.data:
            raise UserNotFoundError("User not found", details={"user_id": str(user_id)})

        await self.follows.remove_all_for_user(user_id)
        await self.execute(
            self.table(USERS_TABLE).delete().eq("id", str(user_id)), "delete_user"
        )
        logger.info("User deleted", extra={"user_id": str(user_id)})

    async def bulk_delete_users(self, user_ids: list[UUID]) -> int:
        """Delete several users and their edges; returns how many ids were given.

        Raises:
            EmptySelectionError: If `user_ids` is empty.
        """
        if not user_ids:
            raise EmptySelectionError("No user IDs provided")

        for user_id in user_ids:
            await self.follows.remove_all_for_user(user_id)

        ids = [str(user_id) for user_id in user_ids]
        await self.execute(
            self.table(USERS_TABLE).delete().in_("id", ids), "bulk_delete_users"
        )
        logger.info("Users deleted in bulk", extra={"count": len(ids)})
        return len(ids)
