"""Shared access to the Supabase PostgREST client.

Every data service builds queries with the supabase-py fluent builder and
runs them through `SupabaseRepository.execute`, which moves the blocking HTTP
round trip off the event loop and turns client failures into
`DatabaseError`.
"""

import asyncio
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from ..core.exceptions import DatabaseError
from ..core.logging import ContextLogger
from ..core.settings import settings

logger = ContextLogger(__name__)

USERS_TABLE = "users"
FOLLOWS_TABLE = "user_follows"

# Postgres SQLSTATE for a unique constraint violation.
UNIQUE_VIOLATION = "23505"


def create_supabase_client() -> Client | None:
    """Build a Supabase client from settings, or None when unconfigured."""
    if not settings.supabase.is_configured:
        logger.warning(
            "Supabase configuration incomplete, database access will be disabled"
        )
        return None

    client = create_client(settings.supabase.url, settings.supabase.anon_key)
    logger.info("Supabase client initialized", extra={"url": settings.supabase.url})
    return client


def is_unique_violation(error: DatabaseError) -> bool:
    return error.details.get("code") == UNIQUE_VIOLATION


def ilike_any(columns: list[str], term: str) -> str:
    """Build a PostgREST `or` filter matching `term` in any of `columns`.

    Characters that delimit PostgREST filter expressions are dropped from the
    term so user input cannot change the filter structure.
    """
    cleaned = "".join(ch for ch in term if ch not in ',()"\\')
    return ",".join(f"{column}.ilike.%{cleaned}%" for column in columns)


class SupabaseRepository:
    """Base class for services backed by Supabase tables.

    Attributes:
        client: Supabase client, or None when the service is not configured.
    """

    def __init__(self, client: Client | None) -> None:
        self.client = client

    def table(self, name: str) -> Any:
        if self.client is None:
            raise DatabaseError(
                "Database access is disabled due to missing Supabase configuration",
                error_code="DATABASE_NOT_CONFIGURED",
            )
        return self.client.table(name)

    async def execute(self, query: Any, operation: str) -> Any:
        """Run a built query and return its response.

        Args:
            query: A supabase-py request builder.
            operation: Short name used in logs and error messages.

        Raises:
            DatabaseError: If PostgREST rejects the query or the request fails.
        """
        try:
            return await asyncio.to_thread(query.execute)
        except APIError as e:
            logger.error(
                "Database query failed",
                extra={"operation": operation, "code": e.code, "error": e.message},
            )
            raise DatabaseError(
                e.message or f"{operation} failed",
                details={"operation": operation, "code": e.code},
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "Database request failed",
                extra={"operation": operation, "error": str(e)},
            )
            raise DatabaseError(
                f"{operation} failed: {e}", details={"operation": operation}
            ) from e

    async def count(self, query: Any, operation: str) -> int:
        """Run a query built with ``count="exact"`` and return the row count."""
        response = await self.execute(query, operation)
        if response.count is not None:
            return response.count
        return len(response.data or [])
