"""Invitation service layer.

Accepting an invitation makes the invited user a group member, which fans
the username out to every group queue. Declined invitations are deleted.
"""

from uuid import uuid4

from sqlalchemy import text
from sqlalchemy.orm import Session

from upnext.db.models import InvitationStatus
from upnext.db.session import transaction
from upnext.errors import ApiErrorCode, ConflictError, InvalidRequestError, NotFoundError
from upnext.logging import get_logger
from upnext.schemas.group import InvitationOut
from upnext.services import groups

logger = get_logger(__name__)

_INVITATION_COLUMNS = "id, group_id, invited_by, invited_user, status, created_at"


def _invitation_from_row(row) -> InvitationOut:
    return InvitationOut(
        id=row[0],
        group_id=row[1],
        invited_by=row[2],
        invited_user=row[3],
        status=row[4],
        created_at=row[5],
    )


def get_invitation(db: Session, invitation_id: str) -> InvitationOut:
    """Get an invitation by id.

    Raises:
        NotFoundError: If the invitation does not exist.
    """
    row = db.execute(
        text(f"SELECT {_INVITATION_COLUMNS} FROM invitations WHERE id = :id"),
        {"id": invitation_id},
    ).fetchone()
    if row is None:
        raise NotFoundError(ApiErrorCode.E_INVITATION_NOT_FOUND, "Invitation not found")
    return _invitation_from_row(row)


def create_invitation(
    db: Session, group_id: str, invited_by: str, invited_user: str
) -> InvitationOut:
    """Invite a user to a group.

    Args:
        db: Database session.
        group_id: Target group.
        invited_by: Username sending the invitation.
        invited_user: Username being invited.

    Returns:
        The pending invitation.

    Raises:
        InvalidRequestError: If any identifier is empty.
        NotFoundError: If the group does not exist.
        ConflictError: If the user is already a member, or a pending
            invitation for the same user and group exists.
    """
    required = {"group_id": group_id, "invited_by": invited_by, "invited_user": invited_user}
    for field, value in required.items():
        if not value or not value.strip():
            raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, f"{field} is required")

    group = groups.get_group(db, group_id)
    if invited_user in group.members:
        raise ConflictError(ApiErrorCode.E_CONFLICT, "User is already a member of this group")

    existing = db.execute(
        text("""
            SELECT 1 FROM invitations
            WHERE group_id = :group_id AND invited_user = :invited_user AND status = 'pending'
        """),
        {"group_id": group_id, "invited_user": invited_user},
    ).fetchone()
    if existing is not None:
        raise ConflictError(ApiErrorCode.E_CONFLICT, "Invitation already exists")

    invitation_id = str(uuid4())
    with transaction(db):
        db.execute(
            text("""
                INSERT INTO invitations (id, group_id, invited_by, invited_user, status)
                VALUES (:id, :group_id, :invited_by, :invited_user, 'pending')
            """),
            {
                "id": invitation_id,
                "group_id": group_id,
                "invited_by": invited_by,
                "invited_user": invited_user,
            },
        )

    logger.info(
        "invitation_created",
        invitation_id=invitation_id,
        group_id=group_id,
        invited_user=invited_user,
    )
    return get_invitation(db, invitation_id)


def list_pending_for_user(db: Session, username: str) -> list[InvitationOut]:
    """Pending invitations addressed to a user, oldest first."""
    rows = db.execute(
        text(f"""
            SELECT {_INVITATION_COLUMNS} FROM invitations
            WHERE invited_user = :username AND status = 'pending'
            ORDER BY created_at ASC, id ASC
        """),
        {"username": username},
    ).fetchall()
    return [_invitation_from_row(row) for row in rows]


def list_pending_for_group(db: Session, group_id: str) -> list[InvitationOut]:
    """Pending invitations to a group, oldest first."""
    rows = db.execute(
        text(f"""
            SELECT {_INVITATION_COLUMNS} FROM invitations
            WHERE group_id = :group_id AND status = 'pending'
            ORDER BY created_at ASC, id ASC
        """),
        {"group_id": group_id},
    ).fetchall()
    return [_invitation_from_row(row) for row in rows]


def respond_to_invitation(db: Session, invitation_id: str, status: str) -> InvitationOut:
    """Accept or decline a pending invitation.

    Accepting adds the invited user to the group and its queues. Declining
    deletes the invitation.

    Returns:
        The invitation with its new status.

    Raises:
        InvalidRequestError: If status is not "accepted" or "declined".
        NotFoundError: If the invitation does not exist.
        ConflictError: If the invitation was already answered.
    """
    if status not in (InvitationStatus.accepted.value, InvitationStatus.declined.value):
        raise InvalidRequestError(ApiErrorCode.E_INVALID_REQUEST, f"Invalid status: {status}")

    invitation = get_invitation(db, invitation_id)
    if invitation.status != InvitationStatus.pending.value:
        raise ConflictError(ApiErrorCode.E_CONFLICT, "Invitation already answered")

    if status == InvitationStatus.declined.value:
        with transaction(db):
            db.execute(text("DELETE FROM invitations WHERE id = :id"), {"id": invitation_id})
        logger.info("invitation_declined", invitation_id=invitation_id)
        return invitation.model_copy(update={"status": status})

    groups.add_member(db, invitation.group_id, invitation.invited_user)
    with transaction(db):
        db.execute(
            text("""
                UPDATE invitations
                SET status = :status, updated_at = CURRENT_TIMESTAMP
                WHERE id = :id
            """),
            {"status": status, "id": invitation_id},
        )

    logger.info(
        "invitation_accepted",
        invitation_id=invitation_id,
        group_id=invitation.group_id,
        invited_user=invitation.invited_user,
    )
    return get_invitation(db, invitation_id)


def delete_invitation(db: Session, invitation_id: str) -> InvitationOut:
    """Delete an invitation regardless of status.

    Raises:
        NotFoundError: If the invitation does not exist.
    """
    invitation = get_invitation(db, invitation_id)
    with transaction(db):
        db.execute(text("DELETE FROM invitations WHERE id = :id"), {"id": invitation_id})
    logger.info("invitation_deleted", invitation_id=invitation_id)
    return invitation
