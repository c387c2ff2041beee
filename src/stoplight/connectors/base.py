"""Core connector abstractions and protocols.

Defines the foundation shared by source drivers:
- Collaborator types: SourceConfig, Collection, TimeInterval, ObjectsLoader
- Driver Protocol: Interface a source driver exposes to the orchestrator
- VersionedTokenAuth: Authorization + Version header strategy
- RequestPolicy: Timeouts and default headers
- ConnectorError hierarchy: Typed exceptions

Everything here is offline-testable.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

Record = Dict[str, Any]


# =============================================================================
# Collaborator Types
# =============================================================================


@dataclass
class SourceConfig:
    """A source entry as handed over by the orchestrator.

    `config` is the raw, untyped payload; each driver validates it itself.
    """

    source_id: str
    source_type: str
    config: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Collection:
    """Destination descriptor owned by the caller (read-only for drivers)."""

    name: str
    table_name: Optional[str] = None

    def get_table_name(self) -> str:
        """Physical table name, falling back to the logical name."""
        return self.table_name or self.name


@dataclass(frozen=True)
class TimeInterval:
    """Refresh interval passed through to the loader unchanged."""

    start: datetime
    end: datetime

    def __str__(self) -> str:
        return f"[{self.start.isoformat()} - {self.end.isoformat()}]"


@runtime_checkable
class ObjectsLoader(Protocol):
    """Persists fetched object sets into the downstream store."""

    def load(self, interval: TimeInterval, *object_sets: List[Record]) -> None:
        """Load every object set for the interval in one call."""
        ...


@runtime_checkable
class Driver(Protocol):
    """Protocol defining the source driver interface."""

    def get_collection_table(self) -> str:
        ...

    def get_collection_meta_key(self) -> str:
        ...

    def get_refresh_window(self) -> timedelta:
        ...

    def replace_tables(self) -> bool:
        ...

    def get_objects_for(self, interval: TimeInterval, objects_loader: ObjectsLoader) -> None:
        ...

    async def aget_objects_for(self, interval: TimeInterval, objects_loader: ObjectsLoader) -> None:
        ...

    def close(self) -> None:
        ...


# =============================================================================
# Authentication
# =============================================================================


@dataclass
class VersionedTokenAuth:
    """Raw access token plus a mandatory API version header.

    The token is sent as-is in `Authorization`; callers that need the
    `Bearer` prefix include it in the configured token.
    """

    access_token: str = ""
    api_version: str = ""

    def get_headers(self) -> Dict[str, str]:
        """Get authentication headers for requests."""
        headers = {}
        if self.access_token:
            headers["Authorization"] = self.access_token
        if self.api_version:
            headers["Version"] = self.api_version
        return headers

    def __repr__(self) -> str:
        return f"VersionedTokenAuth(access_token='***', api_version={self.api_version!r})"


# =============================================================================
# Request Policy
# =============================================================================


@dataclass
class RequestPolicy:
    """Policy for HTTP requests: timeouts and headers.

    Requests are never retried.
    """

    connect_timeout: float = 10.0  # seconds
    read_timeout: float = 30.0  # seconds

    user_agent: str = "stoplight-connector/1.0"
    default_headers: Dict[str, str] = field(default_factory=lambda: {"Accept": "application/json"})


DEFAULT_POLICY = RequestPolicy()


# =============================================================================
# Connector Error Hierarchy
# =============================================================================


class ConnectorError(Exception):
    """Base exception for connector errors."""

    def __init__(self, message: str, connector_name: str = "", details: Optional[Dict[str, Any]] = None):
        self.connector_name = connector_name
        self.details = details or {}
        super().__init__(message)


class ConfigError(ConnectorError):
    """Configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        connector_name: str = "",
        field_errors: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message, connector_name, {"field_errors": field_errors or {}})
        self.field_errors = field_errors or {}


class ConnectionError(ConnectorError):
    """Connectivity check against the service failed."""

    def __init__(
        self,
        message: str,
        connector_name: str = "",
        status_code: Optional[int] = None,
    ):
        super().__init__(message, connector_name, {"status_code": status_code})
        self.status_code = status_code


class TransportError(ConnectorError):
    """Request did not complete (network, DNS, TLS)."""

    pass


class TimeoutError(TransportError):
    """Request timed out."""

    def __init__(
        self,
        message: str = "Request timed out",
        connector_name: str = "",
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(message, connector_name, {"timeout_seconds": timeout_seconds})
        self.timeout_seconds = timeout_seconds


class UpstreamStatusError(ConnectorError):
    """Service answered with a status other than 200."""

    def __init__(
        self,
        message: str,
        connector_name: str = "",
        status_code: int = 0,
        url: str = "",
    ):
        super().__init__(message, connector_name, {"status_code": status_code, "url": url})
        self.status_code = status_code
        self.url = url


class DecodeError(ConnectorError):
    """Response body is not valid JSON of the expected shape."""

    def __init__(self, message: str, connector_name: str = "", url: str = ""):
        super().__init__(message, connector_name, {"url": url})
        self.url = url
