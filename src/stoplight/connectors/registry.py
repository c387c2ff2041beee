"""Driver registry.

Maps a source type to a (factory, prober) pair so a generic orchestrator
can create drivers and test connections by name.

Usage:
    registry = build_default_registry()
    driver = registry.create(source_config, collection)
    registry.test_connection(source_config)

The registry is an explicit object: build it at startup and pass it to
whatever needs it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .base import Collection, Driver, SourceConfig

DriverFactory = Callable[..., Driver]
ConnectionProber = Callable[..., None]


class DriverRegistryError(ValueError):
    """Error raised by the driver registry."""

    pass


@dataclass(frozen=True)
class DriverEntry:
    """Factory and connection prober for one source type."""

    factory: DriverFactory
    prober: ConnectionProber


class DriverRegistry:
    """Registry of available source drivers.

    Names are case-insensitive.
    """

    def __init__(self) -> None:
        self._drivers: Dict[str, DriverEntry] = {}

    def register(self, source_type: str, factory: DriverFactory, prober: ConnectionProber) -> None:
        """Register a driver.

        Args:
            source_type: Source type identifier (e.g., "stoplight")
            factory: Callable(source_config, collection, **kwargs) -> Driver
            prober: Callable(source_config, **kwargs) raising on failure
        """
        self._drivers[source_type.lower()] = DriverEntry(factory=factory, prober=prober)

    def unregister(self, source_type: str) -> None:
        """Unregister a driver."""
        self._drivers.pop(source_type.lower(), None)

    def get(self, source_type: str) -> Optional[DriverEntry]:
        """Get a driver entry by source type."""
        return self._drivers.get(source_type.lower())

    def list_drivers(self) -> List[str]:
        """List all registered source types."""
        return list(self._drivers.keys())

    def is_registered(self, source_type: str) -> bool:
        """Check if a source type is registered."""
        return source_type.lower() in self._drivers

    def _require(self, source_type: str) -> DriverEntry:
        entry = self.get(source_type)
        if entry is None:
            available = self.list_drivers()
            raise DriverRegistryError(f"Unknown source type: '{source_type}'. Available: {available}")
        return entry

    def create(self, source_config: SourceConfig, collection: Collection, **kwargs: Any) -> Driver:
        """Create a driver for the source entry.

        Raises:
            DriverRegistryError: If the source type is not registered
        """
        entry = self._require(source_config.source_type)
        return entry.factory(source_config, collection, **kwargs)

    def test_connection(self, source_config: SourceConfig, **kwargs: Any) -> None:
        """Run the registered connection prober for the source entry.

        Raises:
            DriverRegistryError: If the source type is not registered
        """
        entry = self._require(source_config.source_type)
        entry.prober(source_config, **kwargs)


def build_default_registry() -> DriverRegistry:
    """Create a registry with the built-in drivers."""
    from .stoplight import STOPLIGHT_TYPE, new_stoplight, probe_stoplight

    registry = DriverRegistry()
    registry.register(STOPLIGHT_TYPE, new_stoplight, probe_stoplight)
    return registry
