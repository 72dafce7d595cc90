"""Group and invitation Pydantic schemas."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

InvitationResponseValue = Literal["accepted", "declined"]


class CreateGroupRequest(BaseModel):
    """Request body for creating a group."""

    name: str = Field(..., min_length=1, max_length=100)
    creator: str = Field(..., min_length=1)


class UpdateGroupRequest(BaseModel):
    """Request body for renaming a group."""

    name: str = Field(..., min_length=1, max_length=100)


class GroupMemberRequest(BaseModel):
    """Request body naming a single member."""

    username: str = Field(..., min_length=1)


class GroupOut(BaseModel):
    id: str
    name: str
    creator: str
    members: list[str]
    created_at: datetime | None = None


class CreateInvitationRequest(BaseModel):
    """Request body for inviting a user to a group."""

    group_id: str = Field(..., min_length=1)
    invited_by: str = Field(..., min_length=1)
    invited_user: str = Field(..., min_length=1)


class RespondToInvitationRequest(BaseModel):
    """Request body for accepting or declining an invitation."""

    status: InvitationResponseValue


class InvitationOut(BaseModel):
    id: str
    group_id: str
    invited_by: str
    invited_user: str
    status: str
    created_at: datetime | None = None
