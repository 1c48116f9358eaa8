#!/usr/bin/env python3
"""SatAR command-line interface.

Usage::

    satar refresh --strict --active-only
    satar list --search fox
    satar info 40014
    satar look 40014 --lat 52.0 --lon 4.4
    satar watch 40014 43017 --lat 52.0 --lon 4.4 --ticks 3
"""
from __future__ import annotations

import logging
import sys
import time
from datetime import timedelta
from pathlib import Path

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .api.store import CatalogStore, RefreshError, RefreshReport
from .config import SatarConfig
from .core.catalog import MergePolicy
from .core.propagation import UnknownCatalogNumberError
from .core.topocentric import GeodeticPosition, Vector
from .core.tracking import Tracker, TrackingSelection

console = Console()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--cache-dir", type=click.Path(file_okay=False), help="Directory for local feed copies")
@click.option("--strict", is_flag=True, help="Only catalog objects with known transponders")
@click.option("--active-only", is_flag=True, help="Ignore radio rows that are not active")
@click.option(
    "--max-age-hours",
    type=click.FloatRange(min=0),
    help="Download feeds older than this (0 forces a download)",
)
@click.pass_context
def main(
    ctx: click.Context,
    verbose: bool,
    cache_dir: str | None,
    strict: bool,
    active_only: bool,
    max_age_hours: float | None,
):
    """SatAR - amateur satellite catalog and pointing."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s - %(message)s")

    try:
        config = SatarConfig.from_env(
            cache_dir=Path(cache_dir) if cache_dir else None,
            merge_policy=MergePolicy.STRICT if strict else None,
            active_only=True if active_only else None,
            max_age=timedelta(hours=max_age_hours) if max_age_hours is not None else None,
        )
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    ctx.obj = CatalogStore(config)


def _load(store: CatalogStore) -> RefreshReport:
    try:
        return store.refresh_sync()
    except RefreshError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)


@main.command()
@click.pass_obj
def refresh(store: CatalogStore):
    """Refresh both feeds and report what was merged."""
    report = _load(store)

    def fetch_status(fetch) -> str:
        if fetch.error is not None:
            return f"[yellow]failed ({type(fetch.error).__name__})[/yellow]"
        return "[green]downloaded[/green]" if fetch.downloaded else "cached"

    radio_line = (
        f"[yellow]unusable: {escape(str(report.radio_error))}[/yellow]"
        if report.radio_error is not None
        else f"{len(report.radio)} records "
             f"({report.radio.skipped} skipped, {report.radio.inactive} inactive)"
    )
    console.print(
        Panel(
            f"Orbital feed: {fetch_status(report.orbital_fetch)}, {report.element_count} element sets\n"
            f"Radio feed: {fetch_status(report.radio_fetch)}, {radio_line}\n"
            f"Policy: {report.reconcile.policy.value}\n"
            f"Catalog: [bold green]{report.catalog_size}[/bold green] objects\n"
            f"Orphan radios: {report.reconcile.orphan_radios}\n"
            f"Orphan elements: {report.reconcile.orphan_elements}\n"
            f"Took {report.duration_s:.2f} s",
            title="Refresh",
            box=box.ROUNDED,
        )
    )


@main.command(name="list")
@click.option("--search", "-s", default="", help="Filter by name or NORAD ID")
@click.pass_obj
def list_(store: CatalogStore, search: str):
    """List cataloged objects."""
    _load(store)
    objects = store.catalog.search(search)

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("NORAD", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Radios", justify="right")
    table.add_column("Epoch")
    for obj in objects:
        table.add_row(
            str(obj.norad_id),
            escape(obj.name),
            str(len(obj.radios)),
            f"{obj.tle.epoch:%Y-%m-%d %H:%M}",
        )
    console.print(table)
    console.print(f"{len(objects)} of {len(store.catalog)} objects")


@main.command()
@click.argument("norad_id", type=int)
@click.pass_obj
def info(store: CatalogStore, norad_id: int):
    """Show transponder details for one object."""
    _load(store)
    obj = store.catalog.get(norad_id)
    if obj is None:
        console.print(f"[red]NORAD {norad_id} is not in the catalog[/red]")
        sys.exit(1)
    console.print(obj.describe(), markup=False)


def _observer_options(f):
    f = click.option("--alt", default=0.0, help="Observer altitude in km")(f)
    f = click.option("--lon", required=True, type=float, help="Observer longitude (deg, east +)")(f)
    f = click.option("--lat", required=True, type=float, help="Observer latitude (deg)")(f)
    return f


def _vector_row(table: Table, norad_id: int, name: str, v: Vector) -> None:
    color = "green" if v.up > 0 else "red"
    table.add_row(
        str(norad_id),
        escape(name),
        f"{v.south:.1f}",
        f"{v.east:.1f}",
        f"[{color}]{v.up:.1f}[/{color}]",
        f"{v.magnitude:.1f}",
        f"{v.azimuth_deg:.1f}",
        f"[{color}]{v.elevation_deg:.1f}[/{color}]",
    )


def _vector_table(title: str) -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("NORAD", justify="right", style="cyan")
    table.add_column("Name")
    for heading in ("South (km)", "East (km)", "Up (km)", "Range (km)", "Az (°)", "El (°)"):
        table.add_column(heading, justify="right")
    return table


@main.command()
@click.argument("norad_id", type=int)
@_observer_options
@click.pass_obj
def look(store: CatalogStore, norad_id: int, lat: float, lon: float, alt: float):
    """Where to look for one object right now."""
    _load(store)
    try:
        v = store.look(norad_id, GeodeticPosition(lat, lon, alt))
    except UnknownCatalogNumberError:
        console.print(f"[red]NORAD {norad_id} is not in the catalog[/red]")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    table = _vector_table("Topocentric")
    _vector_row(table, norad_id, store.catalog[norad_id].name, v)
    console.print(table)


@main.command()
@click.argument("norad_ids", type=int, nargs=-1, required=True)
@_observer_options
@click.option("--ticks", default=1, help="Number of ticks to run")
@click.pass_obj
def watch(store: CatalogStore, norad_ids: tuple[int, ...], lat: float, lon: float, alt: float, ticks: int):
    """Track several objects, recomputing every tick interval."""
    _load(store)
    selection = TrackingSelection(norad_ids)
    cfg = store.config
    observer = GeodeticPosition(lat, lon, alt)

    with Tracker(
        store,
        selection,
        tick_interval=cfg.tick_interval_s,
        propagation_timeout=cfg.propagation_timeout_s,
        max_workers=cfg.max_workers,
    ) as tracker:
        for n in range(ticks):
            if n:
                time.sleep(cfg.tick_interval_s)
            result = tracker.tick(observer)
            table = _vector_table(f"Tick {n + 1} ({result.duration_s * 1000:.0f} ms)")
            for norad_id, v in sorted(result.vectors.items()):
                _vector_row(table, norad_id, store.catalog[norad_id].name, v)
            console.print(table)
            for norad_id, reason in sorted(result.failed.items()):
                console.print(f"[yellow]NORAD {norad_id}: {escape(reason)}[/yellow]")


if __name__ == "__main__":
    main()
