"""Dependency injection and service initialization for FollowDesk.

This module implements a service container pattern for managing application
dependencies and their lifecycles. Services share one Supabase client and
are created on first use.

Example:
    Using dependency injection in FastAPI routes:
        from fastapi import Depends
        from followdesk.core.dependencies import get_user_service

        @router.get("/users/{user_id}")
        async def get_user(
            user_id: UUID,
            user_service: UserService = Depends(get_user_service)
        ):
            return await user_service.get_user(user_id)

    Tests replace a provider through `app.dependency_overrides`.
"""

from functools import lru_cache
from typing import Any

from followdesk.services.dashboard import DashboardService
from followdesk.services.database import create_supabase_client
from followdesk.services.follows import FollowService
from followdesk.services.storage import ProfileImageStorage
from followdesk.services.users import UserService


class ServiceContainer:
    """Service container for dependency injection and lifecycle management.

    Attributes:
        _services: Internal dictionary storing initialized service instances.
        _initialized: Flag indicating whether the container has been initialized.
    """

    def __init__(self) -> None:
        self._services: dict[str, Any] = {}
        self._initialized = False

    def initialize(self) -> None:
        """Initialize all services. Calling it again has no effect.

        Services initialized:
            - supabase_client: PostgREST client, None when unconfigured
            - follow_service, user_service, dashboard_service
            - storage_service: profile image uploads
        """
        if self._initialized:
            return

        client = create_supabase_client()
        follow_service = FollowService(client)

        self._services["supabase_client"] = client
        self._services["follow_service"] = follow_service
        self._services["user_service"] = UserService(client, follows=follow_service)
        self._services["dashboard_service"] = DashboardService(client)
        self._services["storage_service"] = ProfileImageStorage(supabase_client=client)

        self._initialized = True

    def get_service(self, service_name: str) -> Any:
        """Get a service instance by name, or None if it is not registered."""
        if not self._initialized:
            self.initialize()
        return self._services.get(service_name)

    @property
    def supabase_client(self) -> Any:
        return self.get_service("supabase_client")

    @property
    def user_service(self) -> UserService:
        return self.get_service("user_service")

    @property
    def follow_service(self) -> FollowService:
        return self.get_service("follow_service")

    @property
    def dashboard_service(self) -> DashboardService:
        return self.get_service("dashboard_service")

    @property
    def storage_service(self) -> ProfileImageStorage:
        return self.get_service("storage_service")


@lru_cache
def get_service_container() -> ServiceContainer:
    """Get the cached ServiceContainer singleton."""
    return ServiceContainer()


def get_user_service() -> UserService:
    """FastAPI dependency provider for the user service."""
    return get_service_container().user_service


def get_follow_service() -> FollowService:
    """FastAPI dependency provider for the follow service."""
    return get_service_container().follow_service


def get_dashboard_service() -> DashboardService:
    """FastAPI dependency provider for the dashboard service."""
    return get_service_container().dashboard_service


def get_storage_service() -> ProfileImageStorage:
    """FastAPI dependency provider for the profile image storage service."""
    return get_service_container().storage_service
