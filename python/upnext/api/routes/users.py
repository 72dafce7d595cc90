"""User routes.

Routes are transport-only: call exactly one service function and wrap its
return value in the success envelope. Services raise ApiError on failure.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from upnext.api.deps import get_db
from upnext.responses import success_response
from upnext.schemas.user import CreateUserRequest, UpdateUserRequest
from upnext.services import users as users_service

router = APIRouter()


@router.post("/users", status_code=status.HTTP_201_CREATED)
def sign_up(body: CreateUserRequest, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Create a user and their six personal queues."""
    user = users_service.sign_up_user(
        db,
        body.username,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return success_response(user.model_dump(mode="json"))


@router.get("/users")
def list_users(db: Annotated[Session, Depends(get_db)]) -> dict:
    """List all users."""
    return success_response([u.model_dump(mode="json") for u in users_service.list_users(db)])


@router.get("/users/{username}")
def get_user(username: str, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Get a user by username."""
    return success_response(users_service.get_user(db, username).model_dump(mode="json"))


@router.patch("/users/{username}")
def update_user(
    username: str, body: UpdateUserRequest, db: Annotated[Session, Depends(get_db)]
) -> dict:
    """Update a user's email or name."""
    user = users_service.update_user(db, username, body.model_dump(exclude_unset=True))
    return success_response(user.model_dump(mode="json"))


@router.delete("/users/{username}")
def delete_user(username: str, db: Annotated[Session, Depends(get_db)]) -> dict:
    """Delete a user and their personal queues."""
    return success_response(users_service.delete_user(db, username).model_dump(mode="json"))
