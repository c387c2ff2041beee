"""Reference ObjectsLoader implementations.

- InMemoryObjectsLoader: Keeps every load call (tests, embedding)
- JsonFileObjectsLoader: Writes one JSON file per object set plus manifest.json

Usage:
    loader = JsonFileObjectsLoader("exports/leads")
    driver.get_objects_for(interval, loader)
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from stoplight.connectors.base import Record, TimeInterval

logger = logging.getLogger(__name__)

DEFAULT_SET_NAMES = ("calendars", "contacts", "opportunities")


@dataclass
class LoadCall:
    """One recorded ObjectsLoader.load invocation."""

    interval: TimeInterval
    object_sets: List[List[Record]]


@dataclass
class InMemoryObjectsLoader:
    """Loader that keeps every call in memory."""

    calls: List[LoadCall] = field(default_factory=list)

    def load(self, interval: TimeInterval, *object_sets: List[Record]) -> None:
        self.calls.append(LoadCall(interval=interval, object_sets=list(object_sets)))

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def last_call(self) -> Optional[LoadCall]:
        return self.calls[-1] if self.calls else None


class LoadManifest(BaseModel):
    """Summary written next to the exported object sets."""

    interval_start: datetime
    interval_end: datetime
    loaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    counts: Dict[str, int] = Field(default_factory=dict)
    files: Dict[str, str] = Field(default_factory=dict)


class JsonFileObjectsLoader:
    """Loader writing each object set to `<output_dir>/<set name>.json`.

    Existing files are overwritten on every load.
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        set_names: Sequence[str] = DEFAULT_SET_NAMES,
    ):
        """Initialize the loader.

        Args:
            output_dir: Directory to write into (created if missing)
            set_names: File stem for each positional object set
        """
        self.output_dir = Path(output_dir)
        self.set_names = tuple(set_names)

    def load(self, interval: TimeInterval, *object_sets: List[Record]) -> None:
        """Write object sets and manifest.json.

        Raises:
            ValueError: If the number of object sets does not match set_names
            OSError: If the files cannot be written
        """
        if len(object_sets) != len(self.set_names):
            raise ValueError(
                f"Expected {len(self.set_names)} object sets ({', '.join(self.set_names)}), "
                f"got {len(object_sets)}"
            )

        self.output_dir.mkdir(parents=True, exist_ok=True)
        manifest = LoadManifest(interval_start=interval.start, interval_end=interval.end)

        for set_name, records in zip(self.set_names, object_sets):
            path = self.output_dir / f"{set_name}.json"
            with open(path, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False, default=str)
            manifest.counts[set_name] = len(records)
            manifest.files[set_name] = path.name

        manifest_path = self.output_dir / "manifest.json"
        with open(manifest_path, "w", encoding="utf-8") as f:
            json.dump(manifest.model_dump(mode="json"), f, indent=2)

        logger.info(f"Wrote {sum(manifest.counts.values())} objects to {self.output_dir}")

    def read_manifest(self) -> LoadManifest:
        """Load the manifest written by the last load call."""
        manifest_path = self.output_dir / "manifest.json"
        with open(manifest_path, encoding="utf-8") as f:
            return LoadManifest.model_validate(json.load(f))
