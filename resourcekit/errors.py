# Exceptions raised by resources.
#
# Transport failures are not exceptions: the Api always returns an ApiResult.
# Only resource operations (save, fetch) promote a failed result to OperationFailed.
#
import logging
from typing import Any, Optional

log = logging.getLogger(__name__)

HTTP_TOKEN_MISMATCH = 419


class ResourceKitError(Exception):
    pass


class OperationFailed(ResourceKitError):
    """
    Raised when the transport call behind a resource operation failed
    """

    def __init__(self, message: str = "", status: Optional[int] = None, operation: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.operation = operation
        log.warning("%s failed (%s): %s", operation or "operation", status, message)

    @property
    def session_expired(self) -> bool:
        return self.status == HTTP_TOKEN_MISMATCH


class InvalidCastError(ResourceKitError, TypeError):
    """
    Raised when a cast declaration is neither a known type name nor a Resource subclass
    """

    def __init__(self, path: str, declaration: Any) -> None:
        super().__init__(f"Invalid cast for '{path}': {declaration!r}")
        self.path = path
        self.declaration = declaration
