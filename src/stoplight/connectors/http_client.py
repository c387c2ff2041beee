"""Authenticated HTTP client wrappers.

Wraps httpx with RequestPolicy enforcement:
- Configurable timeouts
- Auth and default headers on every request
- Error mapping to the ConnectorError hierarchy

Requests are never retried. Tests inject an `httpx.MockTransport`
through the `transport` argument.
"""

import json as json_module
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .base import (
    DEFAULT_POLICY,
    ConnectorError,
    DecodeError,
    RequestPolicy,
    TimeoutError,
    TransportError,
    VersionedTokenAuth,
)

logger = logging.getLogger(__name__)


@dataclass
class HTTPResponse:
    """Simplified HTTP response wrapper.

    Used to provide consistent interface regardless of underlying HTTP library.
    """

    status_code: int
    url: str
    body: bytes
    elapsed_seconds: float = 0.0

    def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            DecodeError: If the body is not valid JSON
        """
        try:
            return json_module.loads(self.body)
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {self.url}: {e}", url=self.url) from e


def _build_timeout(policy: RequestPolicy) -> httpx.Timeout:
    return httpx.Timeout(
        connect=policy.connect_timeout,
        read=policy.read_timeout,
        write=policy.read_timeout,
        pool=policy.connect_timeout,
    )


def _build_headers(
    policy: RequestPolicy,
    auth: Optional[VersionedTokenAuth],
    extra_headers: Optional[Dict[str, str]] = None,
) -> Dict[str, str]:
    """Build request headers including auth and defaults."""
    headers = {"User-Agent": policy.user_agent}
    headers.update(policy.default_headers)

    if auth:
        headers.update(auth.get_headers())

    if extra_headers:
        headers.update(extra_headers)

    return headers


def _map_transport_error(error: httpx.HTTPError, url: str, policy: RequestPolicy) -> ConnectorError:
    """Map an httpx exception to the ConnectorError hierarchy."""
    if isinstance(error, httpx.TimeoutException):
        return TimeoutError(
            f"Request to {url} timed out after {policy.read_timeout}s",
            timeout_seconds=policy.read_timeout,
        )
    if isinstance(error, httpx.ConnectError):
        return TransportError(f"Failed to connect to {url}: {error}")
    return TransportError(f"HTTP error for {url}: {error}")


class HTTPClient:
    """Pooled, authenticated HTTP client.

    A single httpx.Client is kept for the lifetime of this object and is
    safe to share between threads.
    """

    def __init__(
        self,
        auth: Optional[VersionedTokenAuth] = None,
        policy: Optional[RequestPolicy] = None,
        base_url: str = "",
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """Initialize HTTP client.

        Args:
            auth: Authentication strategy for requests
            policy: Request policy (timeouts, headers)
            base_url: Base URL for all requests
            transport: Optional httpx transport (tests use MockTransport)
        """
        self.auth = auth
        self.policy = policy or DEFAULT_POLICY
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            timeout=_build_timeout(self.policy),
            headers=_build_headers(self.policy, self.auth),
            transport=transport,
        )

    def _get_url(self, path: str) -> str:
        """Build full URL from path."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> HTTPResponse:
        """Make a single HTTP request.

        Args:
            method: HTTP method (GET, POST, etc.)
            path: URL path (relative to base_url)
            params: Query parameters
            headers: Additional headers

        Returns:
            HTTPResponse with status and body, whatever the status

        Raises:
            TimeoutError: On request timeout
            TransportError: On connection or protocol failure
        """
        url = self._get_url(path)
        logger.debug(f"{method} {url}")

        start_time = time.monotonic()
        try:
            response = self._client.request(method, url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise _map_transport_error(e, url, self.policy) from e
        elapsed = time.monotonic() - start_time

        return HTTPResponse(
            status_code=response.status_code,
            url=url,
            body=response.content,
            elapsed_seconds=elapsed,
        )

    def get(self, path: str, **kwargs) -> HTTPResponse:
        """HTTP GET request."""
        return self.request("GET", path, **kwargs)

    def close(self) -> None:
        """Release pooled connections."""
        self._client.close()

    def __enter__(self) -> "HTTPClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class AsyncHTTPClient:
    """Async counterpart of HTTPClient.

    Use as an async context manager so the pooled client is closed.
    """

    def __init__(
        self,
        auth: Optional[VersionedTokenAuth] = None,
        policy: Optional[RequestPolicy] = None,
        base_url: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize async HTTP client."""
        self.auth = auth
        self.policy = policy or DEFAULT_POLICY
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=_build_timeout(self.policy),
            headers=_build_headers(self.policy, self.auth),
            transport=transport,
        )

    def _get_url(self, path: str) -> str:
        """Build full URL from path."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> HTTPResponse:
        """Make a single async HTTP request."""
        url = self._get_url(path)
        logger.debug(f"{method} {url} (async)")

        start_time = time.monotonic()
        try:
            response = await self._client.request(method, url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise _map_transport_error(e, url, self.policy) from e
        elapsed = time.monotonic() - start_time

        return HTTPResponse(
            status_code=response.status_code,
            url=url,
            body=response.content,
            elapsed_seconds=elapsed,
        )

    async def get(self, path: str, **kwargs) -> HTTPResponse:
        """Async HTTP GET request."""
        return await self.request("GET", path, **kwargs)

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
