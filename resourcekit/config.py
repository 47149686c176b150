from __future__ import annotations
import os
import sys
import logging
from typing import Any, Mapping, Optional

from resourcekit import dotpath
from resourcekit.http import DEFAULT_TIMEOUT, Api
from resourcekit.models.users import UserResource

log = logging.getLogger(__name__)


class Config:
    """Key-value store addressed by dot-paths ("AUTH.URL_LOGIN")."""

    def __init__(self, options: Optional[Mapping[str, Any]] = None) -> None:
        self._items: dict[str, Any] = {}
        if options:
            self.fill(options)

    def get(self, path: str, default: Any = None) -> Any:
        return dotpath.get(self._items, path, default)

    def set(self, path: str, value: Any) -> "Config":
        dotpath.set(self._items, path, value)
        return self

    def has(self, path: str) -> bool:
        return dotpath.has(self._items, path)

    def fill(self, options: Optional[Mapping[str, Any]]) -> "Config":
        """Deep-merge `options`; keys may be dot-paths or nested dicts."""
        for key, value in (options or {}).items():
            current = self.get(key)
            if isinstance(current, dict) and isinstance(value, Mapping):
                dotpath.merge(current, value)
            else:
                self.set(key, value)
        return self

    def all(self) -> dict[str, Any]:
        return self._items

    def __getitem__(self, path: str) -> Any:
        return self.get(path)

    def __contains__(self, path: str) -> bool:
        return self.has(path)


class Bootstrap(Config):
    """
    Config preloaded with the SDK defaults and a shared `Api`.

    Every resource built from `bootstrap.api` talks to the same transport,
    so headers or tokens set once apply everywhere.
    """

    def __init__(self, options: Optional[Mapping[str, Any]] = None, loglevel: Optional[int] = None) -> None:
        super().__init__()
        if loglevel is not None:
            self.init_logging(loglevel)
        # base url of the remote API
        self.set("API_URL", os.environ.get("API_URL"))
        # headers sent with every request
        self.set("API_HEADERS", {})
        # whether cookies are kept between requests
        self.set("API_CREDENTIALS", False)
        self.set("API_TIMEOUT", DEFAULT_TIMEOUT)
        self.set(
            "AUTH",
            {
                "SESSION_KEY_TOKEN": "auth.token",
                "SESSION_KEY_USER": "auth.user",
                "URL_LOGIN": "auth/login",
                "URL_USER": "users/current",
                "USER_RESOURCE": UserResource,
            },
        )
        self.set("api", Api(self))
        self.fill(options)
        log.debug("Bootstrap configured for %s", self.api_url)

    @staticmethod
    def init_logging(loglevel: int = logging.WARNING) -> logging.Logger:
        """
        Attach a stderr handler to the package logger,
        unless the application already configured it.
        """
        package_log = logging.getLogger("resourcekit")
        if package_log.level == logging.NOTSET:
            handler = logging.StreamHandler(sys.stderr)
            formatter = logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s")
            handler.setFormatter(formatter)
            package_log.setLevel(loglevel)
            package_log.addHandler(handler)
        return package_log

    @property
    def api(self) -> Api:
        return self.get("api")

    @property
    def api_url(self) -> Optional[str]:
        return self.get("API_URL")

    @property
    def auth_user_resource(self) -> type:
        return self.get("AUTH.USER_RESOURCE")

    @property
    def auth_session_key_token(self) -> str:
        return self.get("AUTH.SESSION_KEY_TOKEN")

    @property
    def auth_session_key_user(self) -> str:
        return self.get("AUTH.SESSION_KEY_USER")

    @property
    def auth_url_login(self) -> str:
        return self.get("AUTH.URL_LOGIN")

    @property
    def auth_url_user(self) -> str:
        return self.get("AUTH.URL_USER")
