"""User-related schema definitions.

This module defines Pydantic models for user data validation and
serialization. Rows come back from PostgREST as plain dictionaries and are
validated into `UserResponse`, which derives `age` from `date_of_birth`.
"""

from datetime import date, datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    computed_field,
)

UserStatus = Literal["active", "inactive"]
SortField = Literal[
    "created_at",
    "updated_at",
    "name",
    "email",
    "phone",
    "status",
    "date_of_birth",
    "unit_number",
]

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
TrimmedText = Annotated[str, StringConstraints(strip_whitespace=True)]

_HTTP_URL = TypeAdapter(HttpUrl)


def check_image_url(value: str) -> str:
    """Validate an http(s) URL, scheme optional, and return it exactly as sent."""
    candidate = value if "://" in value else f"http://{value}"
    try:
        url = _HTTP_URL.validate_python(candidate)
    except ValidationError as e:
        raise ValueError("Invalid URL") from e
    if "." not in (url.host or ""):
        raise ValueError("URL must include a domain name")
    return value


ImageUrl = Annotated[str, AfterValidator(check_image_url)]


def calculate_age(date_of_birth: date | None, today: date | None = None) -> int | None:
    """Return the difference between the current year and the birth year."""
    if date_of_birth is None:
        return None
    today = today or date.today()
    return today.year - date_of_birth.year


class UserCreate(BaseModel):
    """Schema for creating a user."""

    name: RequiredText = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Unique email address")
    phone: RequiredText = Field(..., description="Phone number")
    date_of_birth: date = Field(..., description="ISO-8601 date of birth")
    profile_image_url: ImageUrl | None = Field(None, description="Avatar URL")
    unit_number: TrimmedText | None = Field(None, description="Residential unit")
    status: UserStatus = Field("active", description="Account status")
    model_config = ConfigDict(extra="ignore")


class UserUpdate(BaseModel):
    """Schema for a partial user update.

    Only fields present in the request body are written. `name` and `phone`
    may be omitted but never blanked.
    """

    name: RequiredText = Field(None, description="Full name")
    email: EmailStr = Field(None, description="Unique email address")
    phone: RequiredText = Field(None, description="Phone number")
    date_of_birth: date = Field(None, description="ISO-8601 date of birth")
    profile_image_url: ImageUrl | None = Field(None, description="Avatar URL")
    unit_number: TrimmedText | None = Field(None, description="Residential unit")
    status: UserStatus = Field(None, description="Account status")
    model_config = ConfigDict(extra="ignore")


class UserResponse(BaseModel):
    """Schema for a user record with computed fields."""

    id: UUID = Field(..., description="User ID")
    name: str = Field(..., description="Full name")
    email: str = Field(..., description="Email address")
    phone: str | None = Field(None, description="Phone number")
    date_of_birth: date | None = Field(None, description="Date of birth")
    profile_image_url: str | None = Field(None, description="Avatar URL")
    status: str = Field("active", description="Account status")
    unit_number: str | None = Field(None, description="Residential unit")
    created_at: datetime | None = Field(None, description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last update timestamp")
    followers_count: int = Field(0, description="Users following this user")
    following_count: int = Field(0, description="Users this user follows")
    model_config = ConfigDict(extra="ignore")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def age(self) -> int | None:
        return calculate_age(self.date_of_birth)


class FollowConnection(BaseModel):
    """Another user on one side of a follow edge."""

    id: UUID
    name: str
    email: str
    profile_image_url: str | None = None
    unit_number: str | None = None
    followed_at: datetime | None = Field(None, description="When the edge was made")
    model_config = ConfigDict(extra="ignore")


class UserDetailResponse(UserResponse):
    """Schema for a single user with follower and following lists."""

    followers: list[FollowConnection] = Field(default_factory=list)
    following: list[FollowConnection] = Field(default_factory=list)


class PaginationMeta(BaseModel):
    """Page bookkeeping returned alongside list results."""

    current_page: int = Field(..., alias="currentPage")
    total_pages: int = Field(..., alias="totalPages")
    total: int
    limit: int
    has_next: bool = Field(..., alias="hasNext")
    has_prev: bool = Field(..., alias="hasPrev")
    model_config = ConfigDict(populate_by_name=True)


class UserListResponse(BaseModel):
    """Schema for a page of users."""

    data: list[UserResponse]
    pagination: PaginationMeta


class BulkDeleteRequest(BaseModel):
    """Schema for deleting several users at once."""

    user_ids: list[UUID] = Field(..., alias="userIds")
    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str
