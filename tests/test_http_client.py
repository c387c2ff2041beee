"""Tests for the httpx client wrappers.

No network calls - requests go through httpx.MockTransport.
"""

import asyncio

import httpx
import pytest

from stoplight.config import DEFAULT_BASE_URL as BASE_URL
from stoplight.connectors import (
    AsyncHTTPClient,
    ConnectorError,
    DecodeError,
    HTTPClient,
    HTTPResponse,
    RequestPolicy,
    TimeoutError,
    TransportError,
    VersionedTokenAuth,
)


class TestVersionedTokenAuth:
    """Tests for VersionedTokenAuth."""

    def test_headers(self):
        """Token is sent verbatim, version in its own header."""
        auth = VersionedTokenAuth(access_token="Bearer abc", api_version="2021-04-15")
        assert auth.get_headers() == {"Authorization": "Bearer abc", "Version": "2021-04-15"}

    def test_unset_values_send_no_headers(self):
        """Empty values are left out."""
        assert VersionedTokenAuth().get_headers() == {}
        assert VersionedTokenAuth(api_version="v").get_headers() == {"Version": "v"}

    def test_repr_hides_token(self):
        """repr() masks the token."""
        assert "abc" not in repr(VersionedTokenAuth(access_token="abc", api_version="v"))


class TestHTTPResponse:
    """Tests for HTTPResponse."""

    def test_json(self):
        """json() parses the body."""
        assert HTTPResponse(200, "u", b'[{"id": 1}]').json() == [{"id": 1}]

    def test_json_invalid(self):
        """Invalid JSON raises DecodeError with the URL."""
        with pytest.raises(DecodeError) as exc_info:
            HTTPResponse(200, "https://x/contacts/", b"<html>").json()
        assert exc_info.value.url == "https://x/contacts/"
        assert isinstance(exc_info.value, ConnectorError)


class TestHTTPClient:
    """Tests for HTTPClient."""

    def test_get_sends_auth_and_policy_headers(self, fake_api):
        """Every request carries auth, user agent and default headers."""
        fake_api.set_json("/contacts/", [])
        auth = VersionedTokenAuth(access_token="tok", api_version="2021-07-28")
        policy = RequestPolicy(user_agent="test-agent/1.0")

        with HTTPClient(auth=auth, policy=policy, base_url=BASE_URL, transport=fake_api.transport) as client:
            response = client.get("/contacts/")

        assert response.status_code == 200
        assert response.url == f"{BASE_URL}/contacts/"
        request = fake_api.requests[0]
        assert request.method == "GET"
        assert request.headers["Authorization"] == "tok"
        assert request.headers["Version"] == "2021-07-28"
        assert request.headers["User-Agent"] == "test-agent/1.0"
        assert request.headers["Accept"] == "application/json"

    def test_non_2xx_is_returned_not_raised(self, fake_api):
        """Status handling is left to the caller."""
        fake_api.set_json("/contacts/", {"message": "Unauthorized"}, status_code=401)
        with HTTPClient(base_url=BASE_URL, transport=fake_api.transport) as client:
            response = client.get("contacts/")
        assert response.status_code == 401
        assert response.json() == {"message": "Unauthorized"}

    def test_absolute_url_passthrough(self, fake_api):
        """Absolute URLs bypass base_url."""
        fake_api.set_json("/other/", [])
        with HTTPClient(base_url=BASE_URL, transport=fake_api.transport) as client:
            response = client.get("https://elsewhere.example.com/other/")
        assert response.url == "https://elsewhere.example.com/other/"
        assert fake_api.requests[0].url.host == "elsewhere.example.com"

    def test_connect_error_mapped(self, fake_api):
        """httpx.ConnectError becomes TransportError."""
        fake_api.set_error("/contacts/", httpx.ConnectError("DNS failure"))
        with HTTPClient(base_url=BASE_URL, transport=fake_api.transport) as client:
            with pytest.raises(TransportError, match="Failed to connect"):
                client.get("/contacts/")

    def test_timeout_mapped(self, fake_api):
        """httpx timeouts become TimeoutError (a TransportError)."""
        fake_api.set_error("/contacts/", httpx.ReadTimeout("too slow"))
        policy = RequestPolicy(read_timeout=2.5)
        with HTTPClient(policy=policy, base_url=BASE_URL, transport=fake_api.transport) as client:
            with pytest.raises(TimeoutError) as exc_info:
                client.get("/contacts/")
        assert exc_info.value.timeout_seconds == 2.5
        assert isinstance(exc_info.value, TransportError)

    def test_no_retries(self, fake_api):
        """A failing request is attempted exactly once."""
        fake_api.set_json("/contacts/", {}, status_code=503)
        with HTTPClient(base_url=BASE_URL, transport=fake_api.transport) as client:
            client.get("/contacts/")
        assert len(fake_api.requests) == 1


class TestAsyncHTTPClient:
    """Tests for AsyncHTTPClient."""

    def test_get(self, fake_api):
        """Async GET returns the same response shape."""
        fake_api.set_json("/calendars/", [{"id": "c1"}])
        auth = VersionedTokenAuth(access_token="tok", api_version="v")

        async def run():
            async with AsyncHTTPClient(auth=auth, base_url=BASE_URL, transport=fake_api.transport) as client:
                return await client.get("/calendars/")

        response = asyncio.run(run())
        assert response.json() == [{"id": "c1"}]
        assert fake_api.requests[0].headers["Version"] == "v"

    def test_connect_error_mapped(self, fake_api):
        """Async transport failures are mapped the same way."""
        fake_api.set_error("/calendars/", httpx.ConnectError("refused"))

        async def run():
            async with AsyncHTTPClient(base_url=BASE_URL, transport=fake_api.transport) as client:
                await client.get("/calendars/")

        with pytest.raises(TransportError):
            asyncio.run(run())
