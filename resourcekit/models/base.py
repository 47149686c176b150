from __future__ import annotations
import logging
from typing import Any, ClassVar, Mapping, Optional, Sequence

from resourcekit import dotpath
from resourcekit.errors import OperationFailed
from resourcekit.models.casts import Cast, Nested, cast_value, to_cast
from resourcekit.models.status import OperationState, Status
from resourcekit.response import ApiResult, Response

log = logging.getLogger(__name__)


class Resource:
    """
    Typed local projection of one remote entity.

    Subclasses declare their shape with class attributes:

        class UserResource(Resource):
            path = "users"
            casts = {"name": "string", "age": "integer", "address": AddressResource}
            fillable = ["meta.source"]

    or at runtime through `define`, `cast` and `add_fillable`.
    Only fillable paths can be written; only cast paths are serialized.
    """

    _rk_is_resource = True  # checked by casts.is_resource()

    casts: ClassVar[Mapping[str, Any]] = {}
    fillable: ClassVar[Sequence[str]] = ()
    path: ClassVar[str] = "/"
    primary_key: ClassVar[str] = "id"

    def __init__(self, api: Any, attributes: Any = None, path: Optional[str] = None) -> None:
        """
        :param api: shared transport (`resourcekit.http.Api`), also carries the config
        :param attributes: initial values, applied with `fill`
        :param path: endpoint path, defaults to the class `path`
        """
        self._api = api
        self._response = Response()
        self._fillable: list[str] = []
        self._casts: dict[str, Cast] = {}
        self._attributes: dict[str, Any] = {}
        self.status = Status()
        self.path = path or type(self).path or "/"
        self.primary_key = type(self).primary_key

        for fillable_path in type(self).fillable:
            self.add_fillable(fillable_path)
        if type(self).casts:
            self.define(type(self).casts)
        self.fill(attributes or {})

    # Declaration

    def define(self, casts: Mapping[str, Any]) -> "Resource":
        """Declare several casts at once, then re-snapshot the attributes."""
        for path, declaration in casts.items():
            self.cast(path, declaration)
        self.reset()
        return self

    def cast(self, path: str, declaration: Any) -> "Resource":
        """
        Cast `path` to `declaration`.
        A cast path is always fillable.
        """
        self._casts[path] = to_cast(path, declaration)
        self.add_fillable(path)
        return self

    def add_fillable(self, path: str) -> "Resource":
        if path not in self._fillable:
            self._fillable.append(path)
        return self

    # Values

    def fill(self, attributes: Any) -> "Resource":
        """
        Copy every fillable path found in `attributes`.
        Falsy values (0, False, "", None) never overwrite what is stored.
        """
        if isinstance(attributes, Resource):
            attributes = attributes.attributes
        for path in list(self._fillable):
            value = dotpath.get(attributes, path)
            if not value:
                continue
            self.set(path, value)
        return self

    def set(self, path: str, value: Any) -> "Resource":
        if path not in self._fillable:
            return self
        self._store(path, cast_value(self._api, self._casts.get(path), value))
        return self

    def _store(self, path: str, value: Any) -> None:
        # a live child resource on the way receives the rest of the path
        node: Any = self._attributes
        segments = dotpath.split(path)
        for index, segment in enumerate(segments[:-1]):
            node = node.get(segment) if isinstance(node, Mapping) else None
            if isinstance(node, Resource):
                rest = ".".join(segments[index + 1:])
                node._store(rest, cast_value(node._api, node._casts.get(rest), value))
                return
        dotpath.set(self._attributes, path, value)

    def get(self, path: str, default: Any = None) -> Any:
        """
        Read `path`; a falsy stored value falls back to the schema, then to `default`.
        """
        value = self._lookup(path, default)
        if not value:
            return dotpath.get(self.schema, path, default)
        return value

    def filled(self, path: str) -> bool:
        """A path holding None, or no value at all, is not filled."""
        return self._lookup(path, None) is not None

    def _lookup(self, path: str, default: Any) -> Any:
        node: Any = self._attributes
        segments = dotpath.split(path)
        for index, segment in enumerate(segments):
            if isinstance(node, Resource):
                return node._lookup(".".join(segments[index:]), default)
            if not isinstance(node, Mapping) or segment not in node:
                return default
            node = node[segment]
        return node

    def to_json(self) -> dict[str, Any]:
        """Wire payload: every cast path, nested resources included as plain dicts."""
        out: dict[str, Any] = {}
        for path in self._casts:
            value = self.get(path)
            if isinstance(value, Resource):
                value = value.to_json()
            dotpath.set(out, path, value)
        return out

    def reset(self) -> "Resource":
        """Keep only the cast paths, nested casts as live child resources."""
        snapshot: dict[str, Any] = {}
        for path, cast in self._casts.items():
            value = self.get(path)
            if isinstance(cast, Nested) and not isinstance(value, Resource):
                value = cast_value(self._api, cast, value)
            dotpath.set(snapshot, path, value)
        self._attributes = snapshot
        return self

    @property
    def schema(self) -> dict[str, Any]:
        """Zero value of every cast path, derived from the casts only."""
        schema: dict[str, Any] = {}
        for path, cast in self._casts.items():
            value = cast_value(self._api, cast, None)
            if isinstance(value, Resource):
                value = value.schema
            dotpath.set(schema, path, value)
        return schema

    @property
    def attributes(self) -> dict[str, Any]:
        return self._attributes

    @property
    def fillable_paths(self) -> tuple[str, ...]:
        return tuple(self._fillable)

    @property
    def cast_paths(self) -> dict[str, Cast]:
        return dict(self._casts)

    @property
    def key(self) -> Any:
        return self.get(self.primary_key)

    # Operations

    def save(self) -> "Resource":
        """
        POST the resource to its path and fill it back from the answer.
        A request of this resource still in flight is aborted first;
        calls of other resources on the same transport are left alone.

        :raises OperationFailed: when the transport call failed
        """
        return self._run(OperationState.CREATING, "save", "POST", self.to_json())

    def fetch(self, query: Optional[Mapping[str, Any]] = None) -> "Resource":
        """
        GET the resource from its path and fill it from the answer.

        :raises OperationFailed: when the transport call failed
        """
        return self._run(OperationState.FETCHING, "fetch", "GET", dict(query or {}))

    def abort(self) -> "Resource":
        self._api.abort(owner=self)
        self.status.reset()
        self._response.clear()
        return self.reset()

    def _run(self, state: OperationState, operation: str, method: str, data: Any) -> "Resource":
        self._api.abort(owner=self)
        self.status.reset()
        self._response.clear()
        self.status.transition(state)
        try:
            result = self._api.request(self.path, data, method, owner=self)
        except Exception:
            self.status.reset()
            raise
        return self._complete(operation, result)

    def _complete(self, operation: str, result: ApiResult) -> "Resource":
        self._response = Response.from_result(result)
        if self._response.failed:
            self.status.reset()
            raise OperationFailed(self._response.message, self._response.status, operation)
        self.fill(self._response.data)
        self.status.reset()
        log.debug("%s %s on %s done", type(self).__name__, operation, self.path)
        return self

    # Transport and response state

    @property
    def api(self) -> Any:
        return self._api

    @property
    def config(self) -> Any:
        return self._api.config

    @property
    def response(self) -> Response:
        return self._response

    def fail(self, path: str) -> bool:
        return self._response.fail(path)

    def state(self, path: str) -> Optional[bool]:
        return self._response.state(path)

    def feedback(self, path: str) -> str:
        return self._response.feedback(path)

    @property
    def failed(self) -> bool:
        return self._response.failed

    @property
    def failed_message(self) -> str:
        return self._response.message

    @property
    def failed_code(self) -> int:
        return self._response.status

    @property
    def failed_by_session_expire(self) -> bool:
        return self._response.status == Response.HTTP_TOKEN_MISMATCH

    @property
    def is_saving(self) -> bool:
        return self.status.saving

    @property
    def is_creating(self) -> bool:
        return self.status.creating

    @property
    def is_updating(self) -> bool:
        return self.status.updating

    @property
    def is_fetching(self) -> bool:
        return self.status.fetching

    @property
    def is_deleting(self) -> bool:
        return self.status.deleting

    def __getitem__(self, path: str) -> Any:
        return self.get(path)

    def __setitem__(self, path: str, value: Any) -> None:
        self.set(path, value)

    def __contains__(self, path: str) -> bool:
        return self.filled(path)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.to_json()!r}>"
