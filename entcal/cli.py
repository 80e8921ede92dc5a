"""Command-line interface for the entertainment calendar."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

import click

from entcal.csv_import import import_csv
from entcal.dates import (
    date_key,
    format_date,
    format_time,
    group_by_date,
    is_today,
    month_dates,
    rolling_dates,
    week_dates,
)
from entcal.filters import DEFAULT_RADIUS_MILES, EventFilters, apply_filters
from entcal.geo import geocode_address
from entcal.ical import DirectorySink, download_ical
from entcal.models import Event, EventStatus
from entcal.preferences import BackgroundMode, DisplayMode, InteractionMode, Preferences
from entcal.store import EventStore

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(format=LOG_FORMAT, level=level)


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------

def _event_line(event: Event) -> str:
    when = format_date(event.date)
    if event.time:
        when += f" at {format_time(event.time)}"
    parts = [f"{event.id}  {when}  {event.title}"]
    if event.venue:
        parts.append(f"@ {event.venue}")
    parts.append(f"({event.city}, {event.state})")
    if event.price is not None:
        parts.append("Free" if event.price == 0 else f"${event.price:g}")
    if event.distance is not None:
        parts.append(f"{event.distance:.1f} miles away")
    return " ".join(parts)


def _parse_day(value: str | None) -> date:
    if not value:
        return date.today()
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"expected YYYY-MM-DD, got {value!r}")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "--data-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for JSON data files (default: ./data).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, data_dir: Path | None) -> None:
    """Entertainment calendar: browse, filter and export events."""
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["store"] = EventStore(data_dir=data_dir)


@cli.command("import-csv")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--organizer", "organizer_id", default=None, help="Organizer id to own the events.")
@click.pass_context
def import_csv_cmd(ctx: click.Context, path: Path, organizer_id: str | None) -> None:
    """Import events from a CSV file as pending submissions."""
    store: EventStore = ctx.obj["store"]
    try:
        events, skipped = import_csv(path.read_text(encoding="utf-8"), organizer_id)
    except ValueError as exc:
        raise click.ClickException(str(exc))

    added, updated = store.upsert_events(events)
    click.echo(f"Imported {len(events)} event(s): {added} new, {updated} updated.")
    if skipped:
        click.echo(f"Skipped {skipped} row(s) with missing or malformed fields.", err=True)


@cli.command()
@click.option("--search", "-s", default=None, help="Text in title, description or city.")
@click.option("--genre", "genres", multiple=True, help="Genre id (repeatable, any match).")
@click.option("--state", default=None, help="Two-letter state code.")
@click.option("--city", default=None, help="City name or part of it.")
@click.option("--zip", "zip_code", default=None, help="Postal code.")
@click.option("--near", default=None, help="Address to search around (geocoded).")
@click.option("--lat", "latitude", type=float, default=None)
@click.option("--lon", "longitude", type=float, default=None)
@click.option("--radius", type=float, default=None, help=f"Miles (default {DEFAULT_RADIUS_MILES}).")
@click.option("--start", "start_date", default=None, help="Earliest date, YYYY-MM-DD.")
@click.option("--end", "end_date", default=None, help="Latest date, YYYY-MM-DD.")
@click.option("--min-price", type=float, default=None)
@click.option("--max-price", type=float, default=None)
@click.option("--age-limit", default=None, help="Exact age limit tag, e.g. 18+.")
@click.option("--all", "include_unapproved", is_flag=True, help="Include unapproved events.")
@click.option("--organizer", "organizer_id", default=None, help="Only events owned by this organizer.")
@click.option("--past", "include_past", is_flag=True, help="Include past events.")
@click.pass_context
def events(
    ctx: click.Context,
    near: str | None,
    latitude: float | None,
    longitude: float | None,
    radius: float | None,
    include_unapproved: bool,
    include_past: bool,
    organizer_id: str | None,
    **criteria,
) -> None:
    """List events matching the given filters."""
    store: EventStore = ctx.obj["store"]
    filters = EventFilters(**criteria)

    if near and (latitude is not None or longitude is not None):
        raise click.UsageError("Use either --near or --lat/--lon, not both.")
    if (latitude is None) != (longitude is None):
        raise click.UsageError("--lat and --lon must be given together.")
    if radius is not None and not near and latitude is None:
        raise click.UsageError("--radius needs a location (--near or --lat/--lon).")

    if near:
        location = geocode_address(near)
        if location is None:
            raise click.ClickException(f"Could not find location: {near}")
        latitude, longitude = location
    if latitude is not None and longitude is not None:
        filters = filters.with_location(latitude, longitude, radius)

    prefs = store.load_preferences()
    found = apply_filters(
        store.query_events(
            include_unapproved=include_unapproved,
            include_past=include_past or prefs.show_past_events,
        ),
        filters,
    )
    if organizer_id:
        found = [e for e in found if e.organizer_id == organizer_id]

    click.echo(f"{len(found)} event{'' if len(found) == 1 else 's'} found\n")
    for event in found:
        click.echo(_event_line(event))


@cli.command()
@click.option(
    "--view",
    type=click.Choice(["week", "month", "rolling"]),
    default="month",
    show_default=True,
)
@click.option("--date", "anchor", default=None, help="Anchor day, YYYY-MM-DD (default: today).")
@click.option("--past", "include_past", is_flag=True, help="Include past events.")
@click.pass_context
def calendar(ctx: click.Context, view: str, anchor: str | None, include_past: bool) -> None:
    """Show approved events bucketed by day."""
    store: EventStore = ctx.obj["store"]
    day = _parse_day(anchor)
    prefs = store.load_preferences()
    by_date = group_by_date(store.query_events(include_past=include_past or prefs.show_past_events))

    if view == "week":
        days = week_dates(day)
    elif view == "rolling":
        days = rolling_dates(day)
    else:
        days = [d for d in month_dates(day.year, day.month - 1) if d.month == day.month]

    for cell in days:
        day_events = by_date.get(date_key(cell), [])
        if not day_events and view == "rolling":
            continue
        marker = " (today)" if is_today(cell) else ""
        click.echo(f"{cell.strftime('%a %Y-%m-%d')}{marker}")
        for event in day_events:
            time_str = format_time(event.time) or "All day"
            click.echo(f"    {time_str:>8}  {event.title}")


@cli.command()
@click.argument("event_id")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    show_default=True,
)
@click.pass_context
def export(ctx: click.Context, event_id: str, output_dir: Path) -> None:
    """Export one event as an .ics file."""
    store: EventStore = ctx.obj["store"]
    try:
        event = store.get_event(event_id)
    except KeyError as exc:
        raise click.ClickException(exc.args[0])
    path = download_ical(event, DirectorySink(output_dir))
    click.echo(f"Exported: {path}")


@cli.command()
@click.argument("event_id")
@click.argument("status", type=click.Choice([s.value for s in EventStatus]))
@click.pass_context
def moderate(ctx: click.Context, event_id: str, status: str) -> None:
    """Approve, reject, or reset an event submission."""
    store: EventStore = ctx.obj["store"]
    try:
        event = store.set_status(event_id, EventStatus(status))
    except KeyError as exc:
        raise click.ClickException(exc.args[0])
    click.echo(f"{event.title}: {event.status.value}")


@cli.command()
@click.option("--interaction-mode", type=click.Choice([m.value for m in InteractionMode]))
@click.option("--display-mode", type=click.Choice([m.value for m in DisplayMode]))
@click.option("--background-mode", type=click.Choice([m.value for m in BackgroundMode]))
@click.option("--overlay-opacity", type=click.IntRange(0, 100))
@click.option("--show-past-events/--hide-past-events", default=None)
@click.pass_context
def preferences(ctx: click.Context, **changes) -> None:
    """Show or update display and interaction preferences."""
    store: EventStore = ctx.obj["store"]
    current = store.load_preferences().to_dict()
    updates = {k: v for k, v in changes.items() if v is not None}
    if updates:
        current.update(updates)
        # Rebuild through from_dict so the values are validated.
        store.save_preferences(Preferences.from_dict(current))
    for key, value in store.load_preferences().to_dict().items():
        click.echo(f"{key:<18} {value}")


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show store statistics."""
    store: EventStore = ctx.obj["store"]
    s = store.stats()
    click.echo(f"Total events:    {s['total']}")
    click.echo(f"  approved:      {s['approved']}")
    click.echo(f"  pending:       {s['pending']}")
    click.echo(f"  rejected:      {s['rejected']}")
    click.echo(f"Genres:          {s['genres']}")


@cli.command()
@click.argument("event_id")
@click.option("--organizer", "organizer_id", default=None, help="Refuse unless this organizer owns the event.")
@click.pass_context
def delete(ctx: click.Context, event_id: str, organizer_id: str | None) -> None:
    """Delete an event."""
    store: EventStore = ctx.obj["store"]
    try:
        event = store.get_event(event_id)
    except KeyError as exc:
        raise click.ClickException(exc.args[0])
    if organizer_id and event.organizer_id != organizer_id:
        raise click.ClickException(f"Event {event_id} is not owned by {organizer_id}")
    store.delete_event(event_id)
    click.echo(f"Deleted: {event.title}")
