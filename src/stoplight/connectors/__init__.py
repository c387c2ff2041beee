"""Connector layer for the Stoplight (LeadConnector) source.

Key components:
- Driver Protocol and collaborator types (SourceConfig, Collection, TimeInterval, ObjectsLoader)
- VersionedTokenAuth: Authorization + Version headers
- RequestPolicy: Timeouts
- HTTPClient / AsyncHTTPClient: httpx wrappers with error mapping
- StoplightConnector: Calendars, contacts and opportunities driver
- DriverRegistry: Source type -> (factory, prober)
"""

from .base import (
    DEFAULT_POLICY,
    Collection,
    ConfigError,
    ConnectionError,
    # Error hierarchy
    ConnectorError,
    DecodeError,
    # Protocols and collaborator types
    Driver,
    ObjectsLoader,
    Record,
    # Request policy
    RequestPolicy,
    SourceConfig,
    TimeInterval,
    TimeoutError,
    TransportError,
    UpstreamStatusError,
    # Authentication
    VersionedTokenAuth,
)
from .http_client import AsyncHTTPClient, HTTPClient, HTTPResponse
from .registry import DriverEntry, DriverRegistry, DriverRegistryError, build_default_registry
from .stoplight import (
    FETCH_ORDER,
    REFRESH_WINDOW,
    RESOURCE_ENDPOINTS,
    STOPLIGHT_TYPE,
    FetchState,
    ResourceKind,
    StoplightConfig,
    StoplightConnector,
    new_stoplight,
    parse_config,
    probe_stoplight,
)

__all__ = [
    # Protocols and collaborator types
    "Driver",
    "ObjectsLoader",
    "Record",
    "SourceConfig",
    "Collection",
    "TimeInterval",
    # Auth
    "VersionedTokenAuth",
    # Policy
    "RequestPolicy",
    "DEFAULT_POLICY",
    # Errors
    "ConnectorError",
    "ConfigError",
    "ConnectionError",
    "TransportError",
    "TimeoutError",
    "UpstreamStatusError",
    "DecodeError",
    # HTTP client
    "HTTPClient",
    "AsyncHTTPClient",
    "HTTPResponse",
    # Registry
    "DriverRegistry",
    "DriverEntry",
    "DriverRegistryError",
    "build_default_registry",
    # Stoplight driver
    "STOPLIGHT_TYPE",
    "REFRESH_WINDOW",
    "RESOURCE_ENDPOINTS",
    "FETCH_ORDER",
    "FetchState",
    "ResourceKind",
    "StoplightConfig",
    "StoplightConnector",
    "new_stoplight",
    "parse_config",
    "probe_stoplight",
]
