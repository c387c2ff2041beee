"""Test configuration and fixtures."""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple, Union

import httpx
import pytest

from stoplight.connectors import Collection, SourceConfig, TimeInterval

BASE_URL = "https://services.leadconnectorhq.com"

RouteSpec = Union[Tuple[int, bytes], Exception]


class FakeStoplightAPI:
    """Offline stand-in for the LeadConnector API.

    Routes are keyed by URL path; unknown paths answer 404.
    Every request is recorded for assertions.
    """

    def __init__(self):
        self.routes: Dict[str, RouteSpec] = {}
        self.requests: List[httpx.Request] = []

    def set_json(self, path: str, payload: Any, status_code: int = 200) -> None:
        self.routes[path] = (status_code, json.dumps(payload).encode("utf-8"))

    def set_body(self, path: str, body: bytes, status_code: int = 200) -> None:
        self.routes[path] = (status_code, body)

    def set_error(self, path: str, error: Exception) -> None:
        self.routes[path] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        if isinstance(route, Exception):
            raise route
        status_code, body = route
        return httpx.Response(
            status_code,
            content=body,
            headers={"content-type": "application/json"},
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]


@pytest.fixture
def fake_api() -> FakeStoplightAPI:
    """Provide an empty fake API."""
    return FakeStoplightAPI()


@pytest.fixture
def raw_config() -> Dict[str, str]:
    """Provide a valid raw config payload."""
    return {
        "access_token": "Bearer token-abc",
        "api_version": "2021-04-15",
        "calendar_id": "cal-123",
    }


@pytest.fixture
def source_config(raw_config) -> SourceConfig:
    """Provide a Stoplight source entry."""
    return SourceConfig(source_id="stoplight_leads", source_type="stoplight", config=raw_config)


@pytest.fixture
def collection() -> Collection:
    """Provide a destination descriptor."""
    return Collection(name="leads", table_name="leads_table")


@pytest.fixture
def interval() -> TimeInterval:
    """Provide a fixed refresh interval."""
    return TimeInterval(
        start=datetime(2026, 1, 1, tzinfo=timezone.utc),
        end=datetime(2026, 2, 1, tzinfo=timezone.utc),
    )
