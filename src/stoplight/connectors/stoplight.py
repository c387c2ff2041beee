"""Stoplight (LeadConnector) source driver.

Pulls calendars, contacts and opportunities from the LeadConnector API
and hands them to an ObjectsLoader in a single call.

Known limitations:
- Only the first page of each endpoint is read; paginated results are
  silently truncated.
- The refresh interval is passed to the loader but not used to filter
  requests; every call fetches the full current resource set.
"""

import asyncio
import logging
from collections.abc import Mapping
from datetime import timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from stoplight.config import config as app_config

from .base import (
    Collection,
    ConfigError,
    ConnectionError,
    DecodeError,
    ObjectsLoader,
    Record,
    RequestPolicy,
    SourceConfig,
    TimeInterval,
    TransportError,
    UpstreamStatusError,
    VersionedTokenAuth,
)
from .http_client import AsyncHTTPClient, HTTPClient, HTTPResponse

logger = logging.getLogger(__name__)

CONNECTOR_NAME = "stoplight"
STOPLIGHT_TYPE = "stoplight"

REFRESH_WINDOW = timedelta(days=31)


# =============================================================================
# Configuration
# =============================================================================


class StoplightConfig(BaseModel):
    """Validated connection settings. Immutable once parsed."""

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    access_token: str = Field(
        ...,
        min_length=1,
        repr=False,
        validation_alias=AliasChoices("access_token", "accessToken"),
    )
    api_version: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("api_version", "apiVersion")
    )
    calendar_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("calendar_id", "calendarId")
    )

    def auth(self) -> VersionedTokenAuth:
        """Header strategy for this configuration."""
        return VersionedTokenAuth(access_token=self.access_token, api_version=self.api_version)


def parse_config(raw: Any) -> StoplightConfig:
    """Validate a raw configuration payload.

    Args:
        raw: Untyped mapping from the configuration source

    Returns:
        Frozen StoplightConfig

    Raises:
        ConfigError: If the payload is not a mapping or a field is missing/empty
    """
    if not isinstance(raw, Mapping):
        raise ConfigError(
            f"Stoplight config must be a mapping, got {type(raw).__name__}",
            connector_name=CONNECTOR_NAME,
        )

    try:
        return StoplightConfig.model_validate(dict(raw))
    except ValidationError as e:
        field_errors = {
            str(err["loc"][0]) if err["loc"] else "config": err["msg"] for err in e.errors()
        }
        fields = ", ".join(sorted(field_errors))
        raise ConfigError(
            f"Invalid Stoplight config: {fields}",
            connector_name=CONNECTOR_NAME,
            field_errors=field_errors,
        ) from e


# =============================================================================
# Resource Fetchers
# =============================================================================


class ResourceKind(str, Enum):
    """Resource collections exposed by the API."""

    CALENDARS = "calendars"
    CONTACTS = "contacts"
    OPPORTUNITIES = "opportunities"


RESOURCE_ENDPOINTS: Dict[ResourceKind, str] = {
    ResourceKind.CALENDARS: "/calendars/",
    ResourceKind.CONTACTS: "/contacts/",
    ResourceKind.OPPORTUNITIES: "/opportunities/",
}

# Order in which resources are fetched and passed to the loader
FETCH_ORDER = (ResourceKind.CALENDARS, ResourceKind.CONTACTS, ResourceKind.OPPORTUNITIES)


def _decode_records(response: HTTPResponse, kind: ResourceKind) -> List[Record]:
    """Check status and decode a JSON array of objects."""
    if response.status_code != 200:
        raise UpstreamStatusError(
            f"Stoplight returned status code {response.status_code} for {kind.value}",
            connector_name=CONNECTOR_NAME,
            status_code=response.status_code,
            url=response.url,
        )

    payload = response.json()
    if not isinstance(payload, list):
        raise DecodeError(
            f"Expected a JSON array of {kind.value}, got {type(payload).__name__}",
            connector_name=CONNECTOR_NAME,
            url=response.url,
        )
    if not all(isinstance(item, dict) for item in payload):
        raise DecodeError(
            f"Expected every {kind.value} entry to be a JSON object",
            connector_name=CONNECTOR_NAME,
            url=response.url,
        )
    return payload


def fetch_resource(client: HTTPClient, kind: ResourceKind) -> List[Record]:
    """Fetch one resource collection.

    Raises:
        TransportError: If the request does not complete
        UpstreamStatusError: On any status other than 200
        DecodeError: If the body is not a JSON array of objects
    """
    response = client.get(RESOURCE_ENDPOINTS[kind])
    records = _decode_records(response, kind)
    logger.info(f"Fetched {len(records)} {kind.value} in {response.elapsed_seconds:.2f}s")
    return records


async def afetch_resource(client: AsyncHTTPClient, kind: ResourceKind) -> List[Record]:
    """Async variant of fetch_resource."""
    response = await client.get(RESOURCE_ENDPOINTS[kind])
    records = _decode_records(response, kind)
    logger.info(f"Fetched {len(records)} {kind.value} in {response.elapsed_seconds:.2f}s")
    return records


# =============================================================================
# Connectivity Probe
# =============================================================================


def probe_stoplight(
    source_config: SourceConfig,
    *,
    transport: Optional[httpx.BaseTransport] = None,
    policy: Optional[RequestPolicy] = None,
    base_url: Optional[str] = None,
) -> None:
    """Test the connection without creating a driver instance.

    Fetches the configured calendar and checks that a non-empty JSON object
    comes back.

    Raises:
        ConfigError: If the config is invalid (no request is made)
        ConnectionError: If the request does not complete, on a non-200
            status, or on an empty/malformed body
    """
    stoplight_config = parse_config(source_config.config)

    with HTTPClient(
        auth=stoplight_config.auth(),
        policy=policy or app_config.request_policy(),
        base_url=base_url or app_config.base_url,
        transport=transport,
    ) as client:
        try:
            response = client.get(f"/calendars/{stoplight_config.calendar_id}")
        except TransportError as e:
            logger.warning(f"Stoplight probe for {source_config.source_id} failed: {e}")
            raise ConnectionError(
                f"Stoplight request failed: {e}",
                connector_name=CONNECTOR_NAME,
            ) from e

    if response.status_code != 200:
        logger.warning(f"Stoplight probe for {source_config.source_id} failed: {response.status_code}")
        raise ConnectionError(
            f"Stoplight returned status code {response.status_code}",
            connector_name=CONNECTOR_NAME,
            status_code=response.status_code,
        )

    try:
        calendar = response.json()
    except DecodeError as e:
        raise ConnectionError(
            f"Stoplight returned malformed response: {e}",
            connector_name=CONNECTOR_NAME,
            status_code=response.status_code,
        ) from e

    if calendar is not None and not isinstance(calendar, dict):
        raise ConnectionError(
            f"Stoplight returned malformed response: expected a JSON object, got {type(calendar).__name__}",
            connector_name=CONNECTOR_NAME,
            status_code=response.status_code,
        )

    if not calendar:
        raise ConnectionError(
            "Stoplight returned empty response",
            connector_name=CONNECTOR_NAME,
            status_code=response.status_code,
        )

    logger.info(f"Stoplight connection OK for {source_config.source_id}")


# =============================================================================
# Driver
# =============================================================================


class FetchState(str, Enum):
    """Progress of a single get_objects_for call."""

    IDLE = "idle"
    FETCHING_CALENDARS = "fetching_calendars"
    FETCHING_CONTACTS = "fetching_contacts"
    FETCHING_OPPORTUNITIES = "fetching_opportunities"
    LOADING = "loading"
    DONE = "done"
    FAILED = "failed"


_FETCH_STATES = {
    ResourceKind.CALENDARS: FetchState.FETCHING_CALENDARS,
    ResourceKind.CONTACTS: FetchState.FETCHING_CONTACTS,
    ResourceKind.OPPORTUNITIES: FetchState.FETCHING_OPPORTUNITIES,
}


class StoplightConnector:
    """Driver pulling calendars, contacts and opportunities.

    Holds no state between calls besides the pooled HTTP client.
    """

    _name = CONNECTOR_NAME

    def __init__(
        self,
        source_config: SourceConfig,
        collection: Collection,
        *,
        transport: Optional[httpx.BaseTransport] = None,
        async_transport: Optional[httpx.AsyncBaseTransport] = None,
        policy: Optional[RequestPolicy] = None,
        base_url: Optional[str] = None,
    ):
        """Initialize the driver.

        Args:
            source_config: Source entry with the raw config payload
            collection: Destination descriptor
            transport: Optional httpx transport for the sync client
            async_transport: Optional httpx transport for aget_objects_for
            policy: Request policy (defaults to the environment settings)
            base_url: API base URL (defaults to the environment settings)

        Raises:
            ConfigError: If the config payload is invalid
        """
        self.source_id = source_config.source_id
        self.config = parse_config(source_config.config)
        self.collection = collection
        self.policy = policy or app_config.request_policy()
        self.base_url = base_url or app_config.base_url
        self._async_transport = async_transport
        self.client = HTTPClient(
            auth=self.config.auth(),
            policy=self.policy,
            base_url=self.base_url,
            transport=transport,
        )

    @property
    def name(self) -> str:
        """Connector name."""
        return self._name

    def get_collection_table(self) -> str:
        return self.collection.get_table_name()

    def get_collection_meta_key(self) -> str:
        return self.collection.name + "_" + self.get_collection_table()

    def get_refresh_window(self) -> timedelta:
        """How far back a scheduler should refresh. Not applied to requests."""
        return REFRESH_WINDOW

    def replace_tables(self) -> bool:
        """Loaded objects are merged into the destination, never replace it."""
        return False

    def get_calendars(self) -> List[Record]:
        return fetch_resource(self.client, ResourceKind.CALENDARS)

    def get_contacts(self) -> List[Record]:
        return fetch_resource(self.client, ResourceKind.CONTACTS)

    def get_opportunities(self) -> List[Record]:
        return fetch_resource(self.client, ResourceKind.OPPORTUNITIES)

    def _transition(self, current: FetchState, new: FetchState) -> FetchState:
        logger.debug(f"[{self.source_id}] {current.value} -> {new.value}")
        return new

    def get_objects_for(self, interval: TimeInterval, objects_loader: ObjectsLoader) -> None:
        """Fetch all resources and load them in one call.

        Resources are fetched sequentially. The first failure aborts the
        call before the loader is invoked.

        Args:
            interval: Refresh interval, passed to the loader unchanged
            objects_loader: Receives (interval, calendars, contacts, opportunities)
        """
        logger.info(f"[{self.source_id}] Fetching objects for {interval}")
        state = FetchState.IDLE
        fetched: Dict[ResourceKind, List[Record]] = {}

        try:
            for kind in FETCH_ORDER:
                state = self._transition(state, _FETCH_STATES[kind])
                fetched[kind] = fetch_resource(self.client, kind)

            state = self._transition(state, FetchState.LOADING)
            objects_loader.load(interval, *(fetched[kind] for kind in FETCH_ORDER))
        except Exception:
            self._transition(state, FetchState.FAILED)
            raise

        self._transition(state, FetchState.DONE)

    async def aget_objects_for(self, interval: TimeInterval, objects_loader: ObjectsLoader) -> None:
        """Fetch all resources concurrently, then load them in one call.

        If any fetch fails the others are cancelled and the loader is not
        invoked.
        """
        logger.info(f"[{self.source_id}] Fetching objects concurrently for {interval}")

        async with AsyncHTTPClient(
            auth=self.config.auth(),
            policy=self.policy,
            base_url=self.base_url,
            transport=self._async_transport,
        ) as client:
            tasks = [asyncio.ensure_future(afetch_resource(client, kind)) for kind in FETCH_ORDER]
            try:
                results = await asyncio.gather(*tasks)
            except Exception:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                logger.debug(f"[{self.source_id}] concurrent fetch failed, loader skipped")
                raise

        objects_loader.load(interval, *results)
        logger.debug(f"[{self.source_id}] concurrent fetch loaded")

    def close(self) -> None:
        """Release the pooled HTTP client."""
        self.client.close()

    def __enter__(self) -> "StoplightConnector":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def new_stoplight(source_config: SourceConfig, collection: Collection, **kwargs: Any) -> StoplightConnector:
    """Driver factory registered under STOPLIGHT_TYPE."""
    return StoplightConnector(source_config, collection, **kwargs)
