"""Shared fixtures."""

from __future__ import annotations

import pytest

from tests.fakes import FakeApi, PersonResource


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def person(api: FakeApi) -> PersonResource:
    return PersonResource(api)
