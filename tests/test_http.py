"""Tests for the HTTP transport. The session is patched, nothing goes on the wire."""

from __future__ import annotations

import json
import threading
from datetime import date
from typing import Any, Iterator
from unittest.mock import MagicMock, patch

import pytest
import requests

from resourcekit import Api, ApiResult, Config, OperationFailed, Resource
from tests.fakes import PersonResource


def make_response(
    status: int = 200, body: Any = None, reason: str = "OK", raw: bytes | None = None
) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.reason = reason
    if raw is not None:
        resp._content = raw
    else:
        resp._content = b"" if body is None else json.dumps(body).encode()
    return resp


@pytest.fixture
def api() -> Iterator[Api]:
    api = Api(Config({"API_URL": "http://api.test/", "API_HEADERS": {"X-App": "demo"}}))
    yield api
    api.close()


@pytest.fixture
def send(api: Api) -> Iterator[MagicMock]:
    with patch.object(api._session, "request") as mock:
        mock.return_value = make_response(200, {"id": 1})
        yield mock


class TestUrl:
    @pytest.mark.parametrize(
        "base, path, expected",
        [
            ("http://api.test/", "/people", "http://api.test/people"),
            ("http://api.test", "people", "http://api.test/people"),
            ("http://api.test/v1/", "people/4", "http://api.test/v1/people/4"),
            ("http://api.test", "", "http://api.test/"),
        ],
    )
    def test_join(self, base: str, path: str, expected: str) -> None:
        assert Api(Config({"API_URL": base})).url(path) == expected

    def test_default_config(self) -> None:
        api = Api({"API_URL": "http://x.test"})
        assert api.config.get("API_URL") == "http://x.test"
        assert Api().url("a") == "/a"


class TestHeaders:
    def test_helpers(self, api: Api) -> None:
        api.accept_json().content_type_json().xml_http_request().token("abc")
        assert api.headers == {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-Requested-With": "XMLHttpRequest",
            "Authorization": "Bearer abc",
        }

    def test_merge_order(self, api: Api, send: MagicMock) -> None:
        api.header("X-App", "instance").header("X-Other", "1")
        api.request("people", headers={"X-Other": "2"})
        headers = send.call_args.kwargs["headers"]
        assert headers == {"X-App": "instance", "X-Other": "2"}

    def test_config_headers(self, api: Api, send: MagicMock) -> None:
        api.request("people")
        assert send.call_args.kwargs["headers"] == {"X-App": "demo"}


class TestRequest:
    def test_get_sends_params(self, api: Api, send: MagicMock) -> None:
        result = api.request("people", {"page": 2}, "get")
        method, url = send.call_args.args
        assert (method, url) == ("GET", "http://api.test/people")
        assert send.call_args.kwargs["params"] == {"page": 2}
        assert "json" not in send.call_args.kwargs
        assert result == ApiResult(ok=True, message="OK", status=200, data={"id": 1})

    def test_post_sends_json(self, api: Api, send: MagicMock) -> None:
        send.return_value = make_response(201, {"id": 9}, reason="Created")
        data = api.post("people", {"name": "Ana"})
        assert send.call_args.args[0] == "POST"
        assert send.call_args.kwargs["json"] == {"name": "Ana"}
        assert data == {"id": 9}
        assert api.last.status == 201

    def test_get_returns_payload(self, api: Api, send: MagicMock) -> None:
        assert api.get("people/1") == {"id": 1}

    def test_no_content(self, api: Api, send: MagicMock) -> None:
        send.return_value = make_response(204, reason="No Content")
        result = api.request("people/1", {}, "DELETE")
        assert result.ok
        assert result.data == {}

    def test_http_failure(self, api: Api, send: MagicMock) -> None:
        send.return_value = make_response(419, {"message": "CSRF token mismatch."}, reason="Expired")
        result = api.request("people", {"name": "Ana"}, "POST")
        assert result == ApiResult(ok=False, message="Expired", status=419, data={})

    def test_field_errors(self, api: Api, send: MagicMock) -> None:
        body = {"message": "The email has already been taken.", "errors": {"email": ["taken"]}}
        send.return_value = make_response(422, body, reason="Unprocessable Content")
        result = api.request("people", {"email": "ana@mail.test"}, "POST")
        assert not result.ok
        assert result.status == 422
        assert result.errors == {"email": ["taken"]}
        assert result.data == {}

    def test_connection_failure(self, api: Api, send: MagicMock) -> None:
        send.side_effect = requests.exceptions.ConnectionError("refused")
        result = api.request("people")
        assert not result.ok
        assert result.status == 0
        assert "refused" in result.message

    def test_body_not_json(self, api: Api, send: MagicMock) -> None:
        send.return_value = make_response(200, raw=b"<html>")
        result = api.request("people")
        assert result.ok
        assert result.data == {}

    def test_timeout_from_config(self, api: Api, send: MagicMock) -> None:
        api.config.set("API_TIMEOUT", 5)
        api.request("people")
        assert send.call_args.kwargs["timeout"] == 5

    def test_default_timeout(self) -> None:
        api = Api({"API_URL": "http://api.test"})
        with patch.object(api._session, "request", return_value=make_response(200, {})) as send:
            api.request("people")
        api.close()
        assert send.call_args.kwargs["timeout"] == 30

    def test_body_not_serializable(self, api: Api) -> None:
        # the real session prepares the body, only the network send is patched
        with patch.object(api._session, "send") as network:
            result = api.request("people", {"when": date(2024, 1, 1)}, "POST")
        network.assert_not_called()
        assert not result.ok
        assert result.status == 0
        assert result.message


class TestCredentials:
    def test_cookies_dropped_by_default(self, api: Api, send: MagicMock) -> None:
        api._session.cookies.set("sid", "1")
        api.request("people")
        assert "sid" not in api._session.cookies

    def test_cookies_kept_with_credentials(self, api: Api, send: MagicMock) -> None:
        api.config.set("API_CREDENTIALS", True)
        api._session.cookies.set("sid", "1")
        api.request("people")
        assert api._session.cookies.get("sid") == "1"


class TestAbort:
    def test_abort_without_pending_call(self, api: Api) -> None:
        assert api.abort() is api

    def test_abort_in_flight(self, api: Api, send: MagicMock) -> None:
        started = threading.Event()
        release = threading.Event()

        def slow(method: str, url: str, **kwargs: Any) -> requests.Response:
            if url.endswith("/slow"):
                started.set()
                release.wait(5)
                return make_response(200, {"late": True})
            return make_response(200, {"fresh": True})

        send.side_effect = slow
        results: list[ApiResult] = []
        worker = threading.Thread(target=lambda: results.append(api.request("slow")))
        worker.start()
        assert started.wait(5)

        api.abort()
        worker.join(5)
        assert results == [ApiResult(ok=False, message="Aborted", status=0, data={})]
        assert api.last == results[0]

        release.set()
        assert api.get("next") == {"fresh": True}

    def test_abort_only_owner(self, api: Api, send: MagicMock) -> None:
        first, second = object(), object()
        started = threading.Event()
        release = threading.Event()

        def slow(method: str, url: str, **kwargs: Any) -> requests.Response:
            if url.endswith("/slow"):
                started.set()
                release.wait(5)
                return make_response(200, {"late": True})
            return make_response(200, {"fresh": True})

        send.side_effect = slow
        results: list[ApiResult] = []
        worker = threading.Thread(target=lambda: results.append(api.request("slow", owner=first)))
        worker.start()
        assert started.wait(5)

        api.abort(owner=second)
        assert api.request("fast", owner=second).data == {"fresh": True}
        release.set()
        worker.join(5)
        assert results == [ApiResult(ok=True, message="OK", status=200, data={"late": True})]


class TestResourcesOnOneApi:
    @pytest.fixture
    def gate(self, send: MagicMock) -> Iterator[tuple[threading.Event, threading.Event]]:
        started = threading.Event()
        release = threading.Event()

        def answer(method: str, url: str, **kwargs: Any) -> requests.Response:
            if url.endswith("/slow"):
                started.set()
                release.wait(5)
                return make_response(200, {"name": "Late"})
            return make_response(201, {"name": "Fast"}, reason="Created")

        send.side_effect = answer
        yield started, release
        release.set()

    def test_save_does_not_abort_other_resource(self, api: Api, gate: tuple[threading.Event, threading.Event]) -> None:
        started, release = gate
        first = PersonResource(api, {"name": "Ana"}, path="slow")
        second = PersonResource(api, {"name": "Bea"}, path="fast")
        errors: list[Exception] = []

        def save_first() -> None:
            try:
                first.save()
            except OperationFailed as exc:
                errors.append(exc)

        worker = threading.Thread(target=save_first)
        worker.start()
        assert started.wait(5)

        second.save()
        assert second.get("name") == "Fast"
        release.set()
        worker.join(5)
        assert errors == []
        assert first.get("name") == "Late"
        assert not first.is_creating

    def test_abort_own_call(self, api: Api, gate: tuple[threading.Event, threading.Event]) -> None:
        started, _ = gate
        first = PersonResource(api, {"name": "Ana"}, path="slow")
        errors: list[OperationFailed] = []

        def save_first() -> None:
            try:
                first.save()
            except OperationFailed as exc:
                errors.append(exc)

        worker = threading.Thread(target=save_first)
        worker.start()
        assert started.wait(5)

        first.abort()
        worker.join(5)
        assert [exc.message for exc in errors] == ["Aborted"]
        assert [exc.status for exc in errors] == [0]

    def test_unserializable_raw_value(self, api: Api) -> None:
        event = Resource(api, path="events").define({"when": "raw"}).set("when", date(2024, 1, 1))
        with patch.object(api._session, "send") as network:
            with pytest.raises(OperationFailed) as excinfo:
                event.save()
        network.assert_not_called()
        assert excinfo.value.status == 0
        assert event.failed
        assert not event.is_creating
        assert event.status.idle
