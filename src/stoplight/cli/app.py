"""CLI app setup and common utilities.

This module creates the main Typer app and provides shared utilities
for loading source configuration files and resolving the driver registry.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from typer import Context, Typer

from stoplight.config import config
from stoplight.connectors import STOPLIGHT_TYPE, DriverRegistry, SourceConfig, build_default_registry

# Initialize Typer app
app = Typer(
    name="stoplight",
    help="Stoplight connector: pull calendars, contacts and opportunities from LeadConnector.",
)


class CLIState:
    """Shared state object for CLI commands.

    Holds the driver registry used to create drivers and probe connections.
    """

    def __init__(self, registry: Optional[DriverRegistry] = None):
        self.registry = registry


def get_registry(ctx: Context) -> DriverRegistry:
    """Get the driver registry resolved by the app callback."""
    if ctx.obj is not None and ctx.obj.registry is not None:
        return ctx.obj.registry
    raise RuntimeError("Driver registry not initialized - this is a bug")


def load_source_config(path: Path) -> SourceConfig:
    """Read a source config file.

    Accepts either a source entry (`{"id": ..., "type": ..., "config": {...}}`)
    or the bare config mapping, which is treated as a Stoplight source.

    Raises:
        typer.Exit: If the file cannot be read or is not a JSON object.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Cannot read config file {path}: {e}", err=True)
        raise typer.Exit(1)

    if not isinstance(data, dict):
        typer.echo(f"❌ Config file {path} must contain a JSON object", err=True)
        raise typer.Exit(1)

    if "config" in data and "type" in data:
        return SourceConfig(
            source_id=str(data.get("id") or path.stem),
            source_type=str(data["type"]),
            config=data["config"],
        )
    return SourceConfig(source_id=path.stem, source_type=STOPLIGHT_TYPE, config=data)


def parse_datetime(value: str, option: str) -> datetime:
    """Parse an ISO-8601 CLI value, assuming UTC when no offset is given."""
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        typer.echo(f"❌ Invalid {option}: {value} (expected ISO-8601)", err=True)
        raise typer.Exit(1)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@app.callback()
def init_app(
    ctx: Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Initialize logging and the driver registry."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(CLIState)
    if ctx.obj.registry is None:
        ctx.obj.registry = build_default_registry()
