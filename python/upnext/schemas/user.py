"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CreateUserRequest(BaseModel):
    """Request body for signing up a user."""

    username: str = Field(..., min_length=1, max_length=100)
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class UpdateUserRequest(BaseModel):
    """Request body for updating a user's profile. Omitted fields are unchanged."""

    model_config = ConfigDict(extra="forbid")

    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class UserOut(BaseModel):
    id: str
    username: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    date_joined: datetime | None = None
