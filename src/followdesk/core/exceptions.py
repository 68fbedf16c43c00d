"""Unified exception hierarchy for FollowDesk."""

from typing import Any


class FollowDeskError(Exception):
    """Base exception for all FollowDesk errors."""

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


class NotFoundError(FollowDeskError):
    """Base exception for resource not found errors."""

    pass


class UserNotFoundError(NotFoundError):
    """User not found."""

    pass


class FollowNotFoundError(NotFoundError):
    """Follow relationship not found."""

    pass


class ServiceError(FollowDeskError):
    """Base exception for service-level errors."""

    pass


class DatabaseError(ServiceError):
    """Remote database query failed."""

    pass


class StorageError(ServiceError):
    """Storage operation failed."""

    pass


class ValidationError(FollowDeskError):
    """Request validation failed."""

    pass


class DuplicateEmailError(ValidationError):
    """Another user already owns the email address."""

    pass


class SelfFollowError(ValidationError):
    """A user tried to follow themselves."""

    pass


class AlreadyFollowingError(ValidationError):
    """The follow relationship already exists."""

    pass


class EmptySelectionError(ValidationError):
    """A bulk operation received no identifiers."""

    pass


class UploadValidationError(ValidationError):
    """Uploaded file is missing, too large or of the wrong type."""

    pass
