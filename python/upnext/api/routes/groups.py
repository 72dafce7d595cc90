"""Group routes.

Routes are transport-only: call exactly one service function and wrap its
return value in the success envelope.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from upnext.api.deps import get_db
from upnext.responses import success_response
from upnext.schemas.group import CreateGroupRequest, GroupMemberRequest, UpdateGroupRequest
from upnext.services import groups as groups_service

router = APIRouter()


@router.post("/groups", status_code=status.HTTP_201_CREATED)
def create_group(body: CreateGroupRequest, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Create a group and its six shared queues."""
    group = groups_service.create_group(db, body.name, body.creator)
    return success_response(group.model_dump(mode="json"))


@router.get("/groups")
def list_groups(
    db: Annotated[Session, Depends(get_db)],
    username: Annotated[str | None, Query(min_length=1)] = None,
) -> dict:
    """List the groups a user belongs to, or every group when no username is given."""
    if username is None:
        groups = groups_service.list_groups(db)
    else:
        groups = groups_service.list_groups_for_user(db, username)
    return success_response([g.model_dump(mode="json") for g in groups])


@router.get("/groups/{group_id}")
def get_group(group_id: str, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Get a group with its members."""
    return success_response(groups_service.get_group(db, group_id).model_dump(mode="json"))


@router.patch("/groups/{group_id}")
def rename_group(
    group_id: str, body: UpdateGroupRequest, db: Annotated[Session, Depends(get_db)]
) -> dict:
    """Rename a group."""
    group = groups_service.rename_group(db, group_id, body.name)
    return success_response(group.model_dump(mode="json"))


@router.delete("/groups/{group_id}")
def delete_group(group_id: str, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Delete a group with its queues, invitations and memberships."""
    return success_response(groups_service.delete_group(db, group_id).model_dump(mode="json"))


@router.post("/groups/{group_id}/leave")
def leave_group(
    group_id: str, body: GroupMemberRequest, db: Annotated[Session, Depends(get_db)]
) -> dict:
    """Remove a member from a group and its queues."""
    group = groups_service.leave_group(db, group_id, body.username)
    return success_response(group.model_dump(mode="json"))
