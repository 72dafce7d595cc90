"""Invitation routes.

Routes are transport-only: call exactly one service function and wrap its
return value in the success envelope.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from upnext.api.deps import get_db
from upnext.responses import success_response
from upnext.schemas.group import CreateInvitationRequest, RespondToInvitationRequest
from upnext.services import invitations as invitations_service

router = APIRouter()


@router.post("/invitations", status_code=status.HTTP_201_CREATED)
def create_invitation(
    body: CreateInvitationRequest, db: Annotated[Session, Depends(get_db)]
) -> dict:
    """Invite a user to a group."""
    invitation = invitations_service.create_invitation(
        db, body.group_id, body.invited_by, body.invited_user
    )
    return success_response(invitation.model_dump(mode="json"))


@router.get("/invitations")
def list_invitations_for_user(
    username: Annotated[str, Query(min_length=1)],
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Pending invitations addressed to a user."""
    invitations = invitations_service.list_pending_for_user(db, username)
    return success_response([i.model_dump(mode="json") for i in invitations])


@router.get("/invitations/group/{group_id}")
def list_invitations_for_group(group_id: str, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Pending invitations to a group."""
    invitations = invitations_service.list_pending_for_group(db, group_id)
    return success_response([i.model_dump(mode="json") for i in invitations])


@router.put("/invitations/{invitation_id}")
def respond_to_invitation(
    invitation_id: str,
    body: RespondToInvitationRequest,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Accept or decline an invitation."""
    invitation = invitations_service.respond_to_invitation(db, invitation_id, body.status)
    return success_response(invitation.model_dump(mode="json"))


@router.delete("/invitations/{invitation_id}")
def delete_invitation(invitation_id: str, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Delete an invitation."""
    invitation = invitations_service.delete_invitation(db, invitation_id)
    return success_response(invitation.model_dump(mode="json"))
