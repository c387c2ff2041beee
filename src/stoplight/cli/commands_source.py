"""Source CLI commands.

- test-connection: Probe credentials without creating a driver
- fetch: Fetch all objects and write them with the JSON file loader
- info: Show collection bookkeeping for a source
- drivers: List registered source types
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from typer import Context

from stoplight.cli.app import app, get_registry, load_source_config, parse_datetime
from stoplight.config import config
from stoplight.connectors import Collection, ConnectorError, TimeInterval
from stoplight.connectors.registry import DriverRegistryError
from stoplight.loaders import JsonFileObjectsLoader


def _collection(name: str, table: Optional[str]) -> Collection:
    return Collection(name=name, table_name=table)


@app.command(name="test-connection")
def test_connection(
    ctx: Context,
    config_path: Path = typer.Option(..., "--config", "-c", help="Source config JSON file"),
):
    """Check credentials and endpoint reachability.

    Examples:
        stoplight test-connection --config stoplight.json
    """
    source_config = load_source_config(config_path)
    registry = get_registry(ctx)

    typer.echo(f"🔌 Testing {source_config.source_type} source: {source_config.source_id}")
    try:
        registry.test_connection(source_config)
    except (ConnectorError, DriverRegistryError) as e:
        typer.echo(f"❌ Connection failed: {e}", err=True)
        raise typer.Exit(1)

    typer.echo("✅ Connection OK")


@app.command(name="fetch")
def fetch(
    ctx: Context,
    config_path: Path = typer.Option(..., "--config", "-c", help="Source config JSON file"),
    collection: str = typer.Option(..., "--collection", help="Logical collection name"),
    table: Optional[str] = typer.Option(None, "--table", help="Destination table name"),
    start: Optional[str] = typer.Option(None, "--start", help="Interval start (ISO-8601)"),
    end: Optional[str] = typer.Option(None, "--end", help="Interval end (ISO-8601, default: now)"),
    out: Optional[Path] = typer.Option(None, "--out", "-o", help="Output directory"),
    concurrent: bool = typer.Option(False, "--concurrent", help="Fetch resources concurrently"),
):
    """Fetch calendars, contacts and opportunities into JSON files.

    The interval defaults to the driver's refresh window ending now.

    Examples:
        stoplight fetch -c stoplight.json --collection leads
        stoplight fetch -c stoplight.json --collection leads --start 2026-01-01 --out ./exports
    """
    source_config = load_source_config(config_path)
    registry = get_registry(ctx)

    try:
        driver = registry.create(source_config, _collection(collection, table))
    except (ConnectorError, DriverRegistryError) as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)

    interval_end = parse_datetime(end, "--end") if end else datetime.now(timezone.utc)
    if start:
        interval_start = parse_datetime(start, "--start")
    else:
        interval_start = interval_end - driver.get_refresh_window()
    interval = TimeInterval(start=interval_start, end=interval_end)

    if out is None:
        out = config.output_dir / driver.get_collection_table()
    loader = JsonFileObjectsLoader(out)

    typer.echo(f"📥 Fetching {source_config.source_id} for {interval}")
    try:
        if concurrent:
            asyncio.run(driver.aget_objects_for(interval, loader))
        else:
            driver.get_objects_for(interval, loader)
    except (ConnectorError, OSError) as e:
        typer.echo(f"❌ Fetch failed: {e}", err=True)
        raise typer.Exit(1)
    finally:
        driver.close()

    manifest = loader.read_manifest()
    typer.echo("✅ Fetch completed successfully!")
    for set_name, count in manifest.counts.items():
        typer.echo(f"   {set_name.capitalize()}: {count}")
    typer.echo(f"📁 Output directory: {out}")


@app.command(name="info")
def info(
    ctx: Context,
    config_path: Path = typer.Option(..., "--config", "-c", help="Source config JSON file"),
    collection: str = typer.Option(..., "--collection", help="Logical collection name"),
    table: Optional[str] = typer.Option(None, "--table", help="Destination table name"),
):
    """Show table name, meta key and refresh policy for a source."""
    source_config = load_source_config(config_path)
    registry = get_registry(ctx)

    try:
        driver = registry.create(source_config, _collection(collection, table))
    except (ConnectorError, DriverRegistryError) as e:
        typer.echo(f"❌ Error: {e}", err=True)
        raise typer.Exit(1)

    try:
        typer.echo(f"Table: {driver.get_collection_table()}")
        typer.echo(f"Meta key: {driver.get_collection_meta_key()}")
        typer.echo(f"Refresh window: {driver.get_refresh_window().days} days")
        typer.echo(f"Replace tables: {str(driver.replace_tables()).lower()}")
    finally:
        driver.close()


@app.command(name="drivers")
def drivers(ctx: Context):
    """List registered source types."""
    for source_type in get_registry(ctx).list_drivers():
        typer.echo(source_type)
