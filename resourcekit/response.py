from __future__ import annotations
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

from resourcekit import dotpath
from resourcekit.errors import HTTP_TOKEN_MISMATCH


class ApiResult(BaseModel):
    """Normalized outcome of one transport call."""
    model_config = ConfigDict(extra="forbid")

    ok: bool = True
    message: str = ""
    status: int = 200
    data: Any = Field(default_factory=dict)
    # per-field errors of a failed answer, keyed by field path
    errors: dict[str, Any] = Field(default_factory=dict)


class Response:
    """
    Wraps the last transport result of a resource.
    A cleared response is neither failed nor carries data.
    """

    HTTP_NO_CONTENT = 204
    # Laravel's "page expired": the session/csrf token no longer matches
    HTTP_TOKEN_MISMATCH = HTTP_TOKEN_MISMATCH

    def __init__(self, result: Optional[ApiResult] = None) -> None:
        self._result = result or ApiResult()

    @classmethod
    def from_result(cls, result: ApiResult) -> "Response":
        return cls(result)

    def clear(self) -> "Response":
        self._result = ApiResult()
        return self

    @property
    def failed(self) -> bool:
        return not self._result.ok

    @property
    def message(self) -> str:
        return self._result.message

    @property
    def status(self) -> int:
        return self._result.status

    @property
    def data(self) -> Any:
        return self._result.data

    @property
    def session_expired(self) -> bool:
        return self.failed and self.status == self.HTTP_TOKEN_MISMATCH

    @property
    def errors(self) -> dict[str, Any]:
        return self._result.errors

    def _errors_at(self, path: str) -> Any:
        # servers send either flat keys ("address.city") or nested objects
        errors = self._result.errors
        if path in errors:
            return errors[path]
        return dotpath.get(errors, path)

    def fail(self, path: str) -> bool:
        """Whether the last call failed with an error for `path`."""
        return self.failed and bool(self._errors_at(path))

    def state(self, path: str) -> Optional[bool]:
        """
        Validation state of a form field: False when `path` failed,
        None when there is nothing to report.
        """
        return False if self.fail(path) else None

    def feedback(self, path: str) -> str:
        """First error message for `path`, or an empty string."""
        if not self.failed:
            return ""
        errors = self._errors_at(path)
        if isinstance(errors, (list, tuple)):
            return str(errors[0]) if errors else ""
        return str(errors) if errors else ""

    def __repr__(self) -> str:
        return f"<Response status={self.status} failed={self.failed} message={self.message!r}>"
