"""Service module for directed follow relationships.

An edge in `user_follows` reads "follower_id follows following_id". The
service creates and removes edges, counts them per user and lists the users
on either side of a user's edges through the table's foreign-key embeds.
"""

from typing import Any
from uuid import UUID

from ..core.exceptions import (
    AlreadyFollowingError,
    DatabaseError,
    FollowNotFoundError,
    SelfFollowError,
    UserNotFoundError,
)
from ..core.logging import ContextLogger
from ..schemas.follows import FollowRecord
from ..schemas.users import FollowConnection
from .database import (
    FOLLOWS_TABLE,
    USERS_TABLE,
    SupabaseRepository,
    is_unique_violation,
)

logger = ContextLogger(__name__)

_CONNECTION_COLUMNS = "id, name, email, profile_image_url, unit_number"


class FollowService(SupabaseRepository):
    """Manage `user_follows` edges."""

    async def count_followers(self, user_id: UUID | str) -> int:
        query = (
            self.table(FOLLOWS_TABLE)
            .select("id", count="exact")
            .eq("following_id", str(user_id))
        )
        return await self.count(query, "count_followers")

    async def count_following(self, user_id: UUID | str) -> int:
        query = (
            self.table(FOLLOWS_TABLE)
            .select("id", count="exact")
            .eq("follower_id", str(user_id))
        )
        return await self.count(query, "count_following")

    async def list_followers(self, user_id: UUID | str) -> list[FollowConnection]:
        """Users who follow `user_id`, with the time each edge was made."""
        return await self._list_connections(
            user_id, match_column="following_id", embed="user_follows_follower_id_fkey"
        )

    async def list_following(self, user_id: UUID | str) -> list[FollowConnection]:
        """Users followed by `user_id`, with the time each edge was made."""
        return await self._list_connections(
            user_id, match_column="follower_id", embed="user_follows_following_id_fkey"
        )

    async def _list_connections(
        self, user_id: UUID | str, match_column: str, embed: str
    ) -> list[FollowConnection]:
        query = (
            self.table(FOLLOWS_TABLE)
            .select(f"created_at, users!{embed} ({_CONNECTION_COLUMNS})")
            .eq(match_column, str(user_id))
        )
        response = await self.execute(query, f"list_{match_column}_connections")

        connections = []
        for row in response.data or []:
            other = row.get("users")
            if not other:
                continue
            connections.append(
                FollowConnection.model_validate(
                    {**other, "followed_at": row.get("created_at")}
                )
            )
        return connections

    async def find_follow(
        self, follower_id: UUID | str, following_id: UUID | str
    ) -> dict[str, Any] | None:
        query = (
            self.table(FOLLOWS_TABLE)
            .select("id")
            .eq("follower_id", str(follower_id))
            .eq("following_id", str(following_id))
            .limit(1)
        )
        response = await self.execute(query, "find_follow")
        return response.data[0] if response.data else None

    async def _user_exists(self, user_id: UUID | str) -> bool:
        query = self.table(USERS_TABLE).select("id").eq("id", str(user_id)).limit(1)
        response = await self.execute(query, "find_user")
        return bool(response.data)

    async def follow(
        self, follower_id: UUID | str, following_id: UUID | str
    ) -> FollowRecord:
        """Make `follower_id` follow `following_id`.

        Raises:
            SelfFollowError: If both ids are the same user.
            UserNotFoundError: If either user does not exist.
            AlreadyFollowingError: If the edge already exists.
        """
        if str(follower_id) == str(following_id):
            raise SelfFollowError("Cannot follow yourself")

        if not (
            await self._user_exists(follower_id)
            and await self._user_exists(following_id)
        ):
            raise UserNotFoundError(
                "One or both users not found",
                details={
                    "follower_id": str(follower_id),
                    "following_id": str(following_id),
                },
            )

        if await self.find_follow(follower_id, following_id):
            raise AlreadyFollowingError("Already following this user")

        query = self.table(FOLLOWS_TABLE).insert(
            {"follower_id": str(follower_id), "following_id": str(following_id)}
        )
        try:
            response = await self.execute(query, "create_follow")
        except DatabaseError as e:
            if is_unique_violation(e):
                raise AlreadyFollowingError("Already following this user") from e
            raise

        logger.info(
            "Follow relationship created",
            extra={"follower_id": str(follower_id), "following_id": str(following_id)},
        )
        return FollowRecord.model_validate(response.data[0])

    async def unfollow(
        self, follower_id: UUID | str, following_id: UUID | str
    ) -> None:
        """Remove the edge `follower_id -> following_id`.

        Raises:
            FollowNotFoundError: If the edge does not exist.
        """
        if not await self.find_follow(follower_id, following_id):
            raise FollowNotFoundError("Follow relationship not found")

        query = (
            self.table(FOLLOWS_TABLE)
            .delete()
            .eq("follower_id", str(follower_id))
            .eq("following_id", str(following_id))
        )
        await self.execute(query, "delete_follow")

        logger.info(
            "Follow relationship removed",
            extra={"follower_id": str(follower_id), "following_id": str(following_id)},
        )

    async def remove_all_for_user(self, user_id: UUID | str) -> None:
        """Delete every edge where the user is on either side."""
        user_id = str(user_id)
        query = (
            self.table(FOLLOWS_TABLE)
            .delete()
            .or_(f"follower_id.eq.{user_id},following_id.eq.{user_id}")
        )
        await self.execute(query, "delete_user_follows")
