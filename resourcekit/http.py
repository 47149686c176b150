from __future__ import annotations
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import requests

from resourcekit.response import ApiResult

log = logging.getLogger(__name__)

HTTP_NO_CONTENT = 204
BODYLESS_METHODS = ("GET", "HEAD")
DEFAULT_TIMEOUT = 30
MAX_WORKERS = 4
EVERY_OWNER = object()


@dataclass(eq=False)
class _PendingCall:
    future: Future
    done: threading.Event
    owner: Any = None
    aborted: bool = False


class Api:
    """
    HTTP transport shared by every resource of one application.

    Calls run on a small worker pool so the caller can block on them
    while another thread (or the next operation) aborts. Each call may be
    tagged with an `owner`, usually the resource issuing it, so that one
    resource can abort its own call without touching the others.
    An aborted call resolves immediately to a failed ApiResult; whatever
    the server answers afterwards is discarded.
    """

    HTTP_NO_CONTENT = HTTP_NO_CONTENT

    def __init__(self, config: Any = None) -> None:
        if config is None or isinstance(config, Mapping):
            # resourcekit.config imports this module
            from resourcekit.config import Config

            config = Config(config)
        self._config = config
        self._headers: dict[str, str] = {}
        self._session = requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="resourcekit-api")
        self._lock = threading.Lock()
        self._pending: list[_PendingCall] = []
        self.last = ApiResult()

    @property
    def config(self) -> Any:
        return self._config

    # Headers

    def header(self, key: str, value: str) -> "Api":
        self._headers[key] = value
        return self

    def accept_json(self) -> "Api":
        return self.header("Accept", "application/json")

    def content_type_json(self) -> "Api":
        return self.header("Content-Type", "application/json")

    def xml_http_request(self) -> "Api":
        return self.header("X-Requested-With", "XMLHttpRequest")

    def token(self, bearer_token: str) -> "Api":
        return self.header("Authorization", f"Bearer {bearer_token}")

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    # Requests

    def url(self, path: str = "") -> str:
        base = str(self.config.get("API_URL", "") or "").rstrip("/")
        return "/".join([base, str(path or "").lstrip("/")])

    def request(
        self,
        path: str,
        data: Any = None,
        method: str = "GET",
        headers: Optional[Mapping[str, str]] = None,
        owner: Any = None,
    ) -> ApiResult:
        """
        Perform one call and block until it resolves or is aborted.
        Never raises for HTTP, connection or serialization failures, see ApiResult.ok

        :param owner: tag used by `abort(owner=...)`
        """
        method = method.upper()
        url = self.url(path)
        merged = {**(self.config.get("API_HEADERS", {}) or {}), **self._headers, **(headers or {})}

        with self._lock:
            call = _PendingCall(
                future=self._executor.submit(self._send, method, url, data, merged),
                done=threading.Event(),
                owner=owner,
            )
            self._pending.append(call)
        call.future.add_done_callback(lambda _: call.done.set())
        call.done.wait()

        with self._lock:
            if call in self._pending:
                self._pending.remove(call)

        if call.aborted or call.future.cancelled():
            log.debug("%s %s aborted", method, url)
            result = ApiResult(ok=False, message="Aborted", status=0, data={})
        else:
            result = call.future.result()
        self.last = result
        return result

    def get(self, path: str, query: Any = None) -> Any:
        return self.request(path, query or {}, "GET").data

    def post(self, path: str, data: Any = None) -> Any:
        return self.request(path, data if data is not None else {}, "POST").data

    def abort(self, owner: Any = EVERY_OWNER) -> "Api":
        """
        Cancel calls in flight: those issued by `owner`, or all of them when no owner is given.
        """
        with self._lock:
            calls = [call for call in self._pending if owner is EVERY_OWNER or call.owner is owner]
            for call in calls:
                call.aborted = True
                self._pending.remove(call)
        for call in calls:
            call.future.cancel()
            call.done.set()
        if calls:
            log.debug("Aborted %d pending request(s)", len(calls))
        return self

    def close(self) -> None:
        self.abort()
        self._executor.shutdown(wait=False)
        self._session.close()

    def _send(self, method: str, url: str, data: Any, headers: dict[str, str]) -> ApiResult:
        if not self.config.get("API_CREDENTIALS", False):
            self._session.cookies.clear()
        kwargs: dict[str, Any] = {"headers": headers, "timeout": self.config.get("API_TIMEOUT", DEFAULT_TIMEOUT)}
        if method in BODYLESS_METHODS:
            kwargs["params"] = data or None
        else:
            kwargs["json"] = data

        log.debug("%s %s", method, url)
        try:
            resp = self._session.request(method, url, **kwargs)
        except requests.exceptions.RequestException as exc:
            log.warning("%s %s failed: %s", method, url, exc)
            return ApiResult(ok=False, message=str(exc), status=0, data={})
        except TypeError as exc:
            # body holds something json cannot encode (a date, a set, ...)
            log.warning("%s %s body not serializable: %s", method, url, exc)
            return ApiResult(ok=False, message=str(exc), status=0, data={})

        if not resp.ok:
            log.warning("%s %s returned %s %s", method, url, resp.status_code, resp.reason)
            return ApiResult(
                ok=False,
                message=resp.reason or "",
                status=resp.status_code,
                data={},
                errors=self._errors(resp),
            )

        payload: Any = {}
        if resp.status_code != HTTP_NO_CONTENT:
            try:
                payload = resp.json()
            except ValueError:
                log.warning("%s %s returned a body that is not JSON", method, url)
                payload = {}
        return ApiResult(ok=True, message=resp.reason or "", status=resp.status_code, data=payload)

    @staticmethod
    def _errors(resp: requests.Response) -> dict[str, Any]:
        """Per-field errors of a failed answer, e.g. {"errors": {"email": ["taken"]}}"""
        try:
            body = resp.json()
        except ValueError:
            return {}
        errors = body.get("errors") if isinstance(body, dict) else None
        return errors if isinstance(errors, dict) else {}
