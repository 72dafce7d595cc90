"""Error-as-value result type for the queue engine boundary.

Queue engine operations never raise across their public boundary. They
return a Result that either carries the success payload or an error code
plus message. Callers check ``result.ok`` (or ``result.error``) and decide
what to do; HTTP routes call ``result.unwrap()`` so the standard ApiError
handlers render the failure envelope.

Usage:
    result = queues.add_media_to_queue(db, "Movie", queue_id, payload)
    if not result.ok:
        logger.warning("enqueue_failed", error=result.error)
    queue = result.unwrap()
"""

import functools
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, ParamSpec, TypeVar

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from upnext.errors import ApiError, ApiErrorCode
from upnext.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
P = ParamSpec("P")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success payload or failure (code + message), never both."""

    value: T | None = None
    code: ApiErrorCode | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, code: ApiErrorCode, message: str) -> "Result[T]":
        return cls(code=code, error=message)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the payload, or raise the ApiError this failure describes."""
        if self.ok:
            return self.value  # type: ignore[return-value]
        raise ApiError(self.code or ApiErrorCode.E_INTERNAL, self.error or "Unknown error")

    def to_dict(self) -> Any:
        """Render as the payload itself, or ``{"error": message}``."""
        if not self.ok:
            return {"error": self.error}
        return _dump(self.value)


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_dump(item) for item in value]
    if isinstance(value, dict):
        return {key: _dump(item) for key, item in value.items()}
    return value


def returns_result(
    failure_context: str | None = None,
) -> Callable[[Callable[P, T]], Callable[P, Result[T]]]:
    """Convert a raising service function into one returning Result.

    ApiError keeps its code; SQLAlchemyError becomes E_STORE_UNAVAILABLE.
    If the first positional argument is a Session it is rolled back after a
    store failure so the caller can keep using it.

    Args:
        failure_context: Optional prefix for failure messages, e.g.
            "Failed to delete media from current queue".
    """

    def _message(detail: str) -> str:
        return f"{failure_context}: {detail}" if failure_context else detail

    def decorator(fn: Callable[P, T]) -> Callable[P, Result[T]]:
        @functools.wraps(fn)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
            try:
                return Result.success(fn(*args, **kwargs))
            except ApiError as exc:
                logger.info(
                    "queue_operation_rejected",
                    operation=fn.__name__,
                    code=exc.code.value,
                    error=exc.message,
                )
                return Result.failure(exc.code, _message(exc.message))
            except SQLAlchemyError as exc:
                logger.error("queue_operation_failed", operation=fn.__name__, error=str(exc))
                if args and isinstance(args[0], Session):
                    args[0].rollback()
                return Result.failure(
                    ApiErrorCode.E_STORE_UNAVAILABLE,
                    _message(f"Store error: {exc.__class__.__name__}"),
                )

        return wrapper

    return decorator
