import logging
import sys
from typing import Callable, Optional, Tuple

import click
import pytz

from .catalog import CatalogFetch, CatalogLoader, CatalogRecord, filter_by_name, parse_catalog
from .config import (
    DTC_NAME_FILTERS,
    MIN_ELEVATION_DEGREES,
    SCAN_LIMIT,
    TLE_URL,
    SamplerConfig,
    TrackerConfig,
)
from .errors import CatalogFetchFailure, LocationUnavailable, TrackerError
from .location import IPGeolocator, StaticLocator
from .projector import compass_direction, project
from .sampler import (
    LookAngle,
    ObserverLocation,
    SampleResult,
    SkyfieldPropagator,
    UpcomingPass,
    VisibleEntry,
    sample,
)
from .tracker import Scheduler, Session, Tracker, TrackerState

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

__all__ = [
    "CatalogFetch",
    "CatalogFetchFailure",
    "CatalogLoader",
    "CatalogRecord",
    "IPGeolocator",
    "LocationUnavailable",
    "LookAngle",
    "ObserverLocation",
    "SampleResult",
    "SamplerConfig",
    "Scheduler",
    "Session",
    "SkyfieldPropagator",
    "StaticLocator",
    "Tracker",
    "TrackerConfig",
    "TrackerError",
    "TrackerState",
    "UpcomingPass",
    "VisibleEntry",
    "build_config",
    "compass_direction",
    "filter_by_name",
    "main",
    "parse_catalog",
    "project",
    "run_tracker",
    "sample",
]


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr so the report on stdout stays readable."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        stream=sys.stderr,
    )


def build_config(
    min_elevation: float = MIN_ELEVATION_DEGREES,
    name_filters: Tuple[str, ...] = DTC_NAME_FILTERS,
    tle_url: str = TLE_URL,
    scan_limit: Optional[int] = SCAN_LIMIT,
    svg_path: Optional[str] = None,
) -> TrackerConfig:
    """Assemble a tracker configuration from command line values."""
    return TrackerConfig(
        sampler=SamplerConfig(min_elevation_deg=min_elevation, scan_limit=scan_limit),
        tle_url=tle_url,
        name_filters=tuple(name_filters),
        svg_path=svg_path,
    )


def run_tracker(
    config: TrackerConfig,
    locator,
    tz=pytz.UTC,
    heading: Optional[float] = None,
    once: bool = False,
    display: Callable[[str], None] = click.echo,
) -> bool:
    """Start tracking and keep polling until interrupted.

    Returns False when the session failed to start.
    """
    tracker = Tracker(locator, config=config, display=display, tz=tz)

    if heading is not None:
        tracker.update_heading(heading)

    if not tracker.start():
        return False

    if once:
        return True

    try:
        tracker.run()
    except KeyboardInterrupt:
        tracker.stop()
    return True


@click.command(context_settings={"auto_envvar_prefix": "DTC_TRACKER"})
@click.option(
    "--latitude", "-lat", type=float, default=None, help="Observer latitude in degrees"
)
@click.option(
    "--longitude",
    "-lon",
    type=float,
    default=None,
    help="Observer longitude in degrees",
)
@click.option(
    "--elevation",
    "-elev",
    type=float,
    default=None,
    help="Observer elevation in meters",
)
@click.option(
    "--min-elevation",
    type=click.FloatRange(-90, 90),
    default=MIN_ELEVATION_DEGREES,
    show_default=True,
    help="Minimum elevation in degrees for a satellite to count as overhead",
)
@click.option(
    "--filter",
    "-f",
    "name_filters",
    multiple=True,
    help="Only track satellites whose name contains this text (repeatable)",
)
@click.option(
    "--all",
    "track_all",
    is_flag=True,
    help="Track every satellite in the catalog instead of filtering by name",
)
@click.option(
    "--tle-url", default=TLE_URL, show_default=True, help="Three-line element set URL"
)
@click.option(
    "--scan-limit",
    type=click.IntRange(min=0),
    default=SCAN_LIMIT,
    show_default=True,
    help="Satellites checked when looking for the next passes (0 for all)",
)
@click.option(
    "--heading",
    type=click.FloatRange(0, 360, max_open=True),
    default=None,
    help="Device heading in degrees used to rotate the sky map",
)
@click.option(
    "--svg",
    "svg_path",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the sky map to this SVG file after every update",
)
@click.option(
    "--timezone",
    "tz_name",
    default="UTC",
    show_default=True,
    help="Time zone for displayed times",
)
@click.option("--once", is_flag=True, help="Show one update and exit")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show verbose debug information",
)
def main(
    latitude: float | None,
    longitude: float | None,
    elevation: float | None,
    min_elevation: float,
    name_filters: Tuple[str, ...],
    track_all: bool,
    tle_url: str,
    scan_limit: int,
    heading: float | None,
    svg_path: str | None,
    tz_name: str,
    once: bool,
    verbose: bool,
) -> None:
    """Show which Starlink Direct-to-Cell satellites are overhead right now."""
    configure_logging(verbose)

    if (latitude is None) != (longitude is None):
        raise click.UsageError("--latitude and --longitude must be given together")

    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        raise click.BadParameter(
            f"unknown time zone {tz_name!r}", param_hint="--timezone"
        ) from None

    if track_all:
        filters: Tuple[str, ...] = ()
    else:
        filters = name_filters or DTC_NAME_FILTERS

    config = build_config(
        min_elevation=min_elevation,
        name_filters=filters,
        tle_url=tle_url,
        scan_limit=scan_limit or None,
        svg_path=svg_path,
    )

    if latitude is not None:
        locator = StaticLocator(latitude, longitude, elevation)
    else:
        locator = IPGeolocator()

    def display(text: str) -> None:
        if not once:
            click.clear()
        click.echo(text)

    if not run_tracker(config, locator, tz, heading, once, display):
        sys.exit(1)
