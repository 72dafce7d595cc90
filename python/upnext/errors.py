"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
Services raise these; the queue engine converts them into Result values
(see upnext.result) before they reach its callers.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_INVALID_MEDIA_TYPE = "E_INVALID_MEDIA_TYPE"

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_QUEUE_NOT_FOUND = "E_QUEUE_NOT_FOUND"
    E_GROUP_NOT_FOUND = "E_GROUP_NOT_FOUND"
    E_USER_NOT_FOUND = "E_USER_NOT_FOUND"
    E_INVITATION_NOT_FOUND = "E_INVITATION_NOT_FOUND"
    E_MEDIA_NOT_FOUND = "E_MEDIA_NOT_FOUND"

    # Conflict errors (409)
    E_CONFLICT = "E_CONFLICT"
    E_MEDIA_ALREADY_IN_QUEUE = "E_MEDIA_ALREADY_IN_QUEUE"

    # Server errors
    E_QUEUE_CREATION_FAILED = "E_QUEUE_CREATION_FAILED"  # 500
    E_STORE_UNAVAILABLE = "E_STORE_UNAVAILABLE"  # 503
    E_INTERNAL = "E_INTERNAL"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_INVALID_MEDIA_TYPE: 400,
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_QUEUE_NOT_FOUND: 404,
    ApiErrorCode.E_GROUP_NOT_FOUND: 404,
    ApiErrorCode.E_USER_NOT_FOUND: 404,
    ApiErrorCode.E_INVITATION_NOT_FOUND: 404,
    ApiErrorCode.E_MEDIA_NOT_FOUND: 404,
    ApiErrorCode.E_CONFLICT: 409,
    ApiErrorCode.E_MEDIA_ALREADY_IN_QUEUE: 409,
    ApiErrorCode.E_QUEUE_CREATION_FAILED: 500,
    ApiErrorCode.E_STORE_UNAVAILABLE: 503,
    ApiErrorCode.E_INTERNAL: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class ConflictError(ApiError):
    """Resource already exists (duplicate invitation, username, queue)."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_CONFLICT, message: str = "Conflict"):
        super().__init__(code, message)


class DuplicateMediaError(ConflictError):
    """Media id is already in the queue's current or history bucket."""

    def __init__(self, message: str = "Media already in queue"):
        super().__init__(ApiErrorCode.E_MEDIA_ALREADY_IN_QUEUE, message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class QueueCreationError(ApiError):
    """A queue row could not be written."""

    def __init__(self, message: str = "Error creating queue"):
        super().__init__(ApiErrorCode.E_QUEUE_CREATION_FAILED, message)


class UpstreamStoreError(ApiError):
    """The underlying database failed or was unreachable."""

    def __init__(self, message: str = "Store unavailable"):
        super().__init__(ApiErrorCode.E_STORE_UNAVAILABLE, message)
