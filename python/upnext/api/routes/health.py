"""Health check endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from upnext.api.deps import get_db
from upnext.errors import UpstreamStoreError
from upnext.responses import success_response

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Liveness check endpoint.

    Returns 200 if the process is running.
    Does not check database or other dependencies.
    """
    return success_response({"status": "ok"})


@router.get("/health/ready")
def readiness_check(db: Annotated[Session, Depends(get_db)]) -> dict:
    """Readiness check: the database answers a trivial query."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise UpstreamStoreError("Database unavailable") from exc
    return success_response({"status": "ok", "database": "ok"})
