"""Tests for the reference ObjectsLoader implementations."""

import json

import pytest

from stoplight.connectors import ObjectsLoader
from stoplight.loaders import InMemoryObjectsLoader, JsonFileObjectsLoader


class TestInMemoryObjectsLoader:
    """Tests for InMemoryObjectsLoader."""

    def test_records_calls(self, interval):
        """Every load call is kept."""
        loader = InMemoryObjectsLoader()
        assert loader.last_call is None

        loader.load(interval, [{"id": 1}], [], [{"id": 2}])

        assert loader.call_count == 1
        assert loader.last_call.interval == interval
        assert loader.last_call.object_sets == [[{"id": 1}], [], [{"id": 2}]]

    def test_is_objects_loader(self):
        """Satisfies the ObjectsLoader protocol."""
        assert isinstance(InMemoryObjectsLoader(), ObjectsLoader)


class TestJsonFileObjectsLoader:
    """Tests for JsonFileObjectsLoader."""

    def test_writes_sets_and_manifest(self, tmp_path, interval):
        """Each set lands in its own file with a manifest."""
        out = tmp_path / "exports"
        loader = JsonFileObjectsLoader(out)
        loader.load(interval, [{"id": "cal-1"}], [], [{"id": "op-1"}, {"id": "op-2"}])

        assert json.loads((out / "calendars.json").read_text(encoding="utf-8")) == [{"id": "cal-1"}]
        assert json.loads((out / "contacts.json").read_text(encoding="utf-8")) == []
        assert len(json.loads((out / "opportunities.json").read_text(encoding="utf-8"))) == 2

        manifest = loader.read_manifest()
        assert manifest.counts == {"calendars": 1, "contacts": 0, "opportunities": 2}
        assert manifest.interval_start == interval.start
        assert manifest.interval_end == interval.end
        assert manifest.files["contacts"] == "contacts.json"

    def test_overwrites_previous_load(self, tmp_path, interval):
        """A second load replaces the files."""
        loader = JsonFileObjectsLoader(tmp_path)
        loader.load(interval, [{"id": 1}, {"id": 2}], [], [])
        loader.load(interval, [], [], [])
        assert loader.read_manifest().counts["calendars"] == 0

    def test_wrong_number_of_sets(self, tmp_path, interval):
        """Set count must match the configured names."""
        loader = JsonFileObjectsLoader(tmp_path)
        with pytest.raises(ValueError, match="Expected 3 object sets"):
            loader.load(interval, [], [])

    def test_custom_set_names(self, tmp_path, interval):
        """File stems follow set_names."""
        loader = JsonFileObjectsLoader(tmp_path, set_names=("a", "b"))
        loader.load(interval, [{"x": 1}], [])
        assert (tmp_path / "a.json").exists()
        assert (tmp_path / "b.json").exists()
