import logging
import sched
import time
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

import click
import pytz

from .catalog import CatalogLoader, CatalogRecord
from .config import TrackerConfig
from .errors import LocationUnavailable, TrackerError
from .sampler import ObserverLocation, SampleResult, SkyfieldPropagator, sample
from .views import (
    render_empty_sky_map,
    render_error,
    render_loading,
    render_report,
    render_sky_map,
)

logger = logging.getLogger(__name__)

SAMPLE_TASK = "sample"
REFRESH_TASK = "refresh-catalog"


class TrackerState(Enum):
    ACQUIRING_LOCATION = "acquiring-location"
    LOADING_CATALOG = "loading-catalog"
    TRACKING = "tracking"
    FAILED = "failed"


@dataclass
class Session:
    """Mutable state of one tracking session.

    Each field has a single writer: ``observer`` is set by the locator,
    ``catalog`` by catalog refreshes, ``heading`` by the orientation
    handler and the rest by the tracker itself.
    """

    observer: Optional[ObserverLocation] = None
    catalog: Tuple[CatalogRecord, ...] = ()
    heading: float = 0.0
    state: TrackerState = TrackerState.ACQUIRING_LOCATION
    last_result: Optional[SampleResult] = None
    error: Optional[TrackerError] = None


class Scheduler:
    """Named recurring tasks on a single cooperative timeline."""

    def __init__(
        self,
        timefunc: Callable[[], float] = time.monotonic,
        delayfunc: Callable[[float], None] = time.sleep,
    ):
        self._timefunc = timefunc
        self._delayfunc = delayfunc
        self._queue = sched.scheduler(timefunc, delayfunc)
        self._events: Dict[str, sched.Event] = {}
        self._stopped = False

    @property
    def tasks(self):
        return sorted(self._events)

    def every(self, name: str, interval: float, func: Callable[[], None]) -> None:
        """Run ``func`` every ``interval`` seconds, starting one interval from now."""
        self.cancel(name)

        def fire():
            # Next run is queued before this one executes
            self._events[name] = self._queue.enter(interval, 0, fire)
            func()

        self._events[name] = self._queue.enter(interval, 0, fire)

    def cancel(self, name: str) -> None:
        event = self._events.pop(name, None)
        if event is not None:
            self._queue.cancel(event)

    def stop(self) -> None:
        self._stopped = True

    def run(self, duration: Optional[float] = None) -> None:
        """Run due tasks until stopped, out of tasks, or ``duration`` elapsed."""
        self._stopped = False
        deadline = None if duration is None else self._timefunc() + duration

        while not self._stopped:
            delay = self._queue.run(blocking=False)
            if delay is None or self._stopped:
                break
            if deadline is not None and self._timefunc() + delay > deadline:
                break
            self._delayfunc(delay)


def _default_clock() -> datetime:
    return datetime.now(pytz.UTC)


class Tracker:
    """Acquires a location, loads the catalog and keeps sampling."""

    def __init__(
        self,
        locator,
        loader: Optional[CatalogLoader] = None,
        config: Optional[TrackerConfig] = None,
        propagator=None,
        scheduler: Optional[Scheduler] = None,
        display: Callable[[str], None] = click.echo,
        clock: Callable[[], datetime] = _default_clock,
        tz=pytz.UTC,
    ):
        self.config = config if config is not None else TrackerConfig()
        self.locator = locator
        self.loader = loader if loader is not None else CatalogLoader(
            self.config.tle_url, self.config.name_filters, self.config.request_timeout
        )
        self.propagator = propagator if propagator is not None else SkyfieldPropagator()
        self.scheduler = scheduler if scheduler is not None else Scheduler()
        self.display = display
        self.clock = clock
        self.tz = tz
        self.session = Session()

    def _fail(self, error: TrackerError, message: str) -> bool:
        self.session.state = TrackerState.FAILED
        self.session.error = error
        self.display(render_error(message))
        return False

    def start(self) -> bool:
        """Run the startup sequence; returns False if the session failed."""
        self.session.state = TrackerState.ACQUIRING_LOCATION
        self.display(render_loading("Getting your location..."))
        try:
            self.session.observer = self.locator.locate()
        except LocationUnavailable as exc:
            logger.error("Geolocation error: %s", exc)
            return self._fail(
                exc, f"Location error: {exc}. Please provide your coordinates and retry."
            )

        logger.info("Location acquired: %s", self.session.observer)
        self.session.state = TrackerState.LOADING_CATALOG
        self.display(render_loading("Loading satellite data...", "Location acquired"))

        fetch = self.loader.load()
        if not fetch.ok:
            return self._fail(
                fetch.error,
                "Failed to fetch satellite data. "
                "Please check your internet connection and try again.",
            )
        self.session.catalog = fetch.records

        self.session.state = TrackerState.TRACKING
        self.sample_now()

        self.scheduler.every(SAMPLE_TASK, self.config.sample_interval, self.sample_now)
        self.scheduler.every(
            REFRESH_TASK, self.config.catalog_refresh_interval, self.refresh_catalog
        )
        return True

    def refresh_catalog(self) -> bool:
        """Replace the catalog wholesale; failures keep the old one."""
        logger.info("Refreshing TLE data...")
        fetch = self.loader.load()
        if not fetch.ok:
            logger.error("Catalog refresh failed, keeping previous data: %s", fetch.error)
            return False

        self.session.catalog = fetch.records
        return True

    def sample_now(self) -> SampleResult:
        """Run one sampling pass and render it."""
        # Read once so a refresh mid-pass cannot change what we iterate
        catalog = self.session.catalog
        result = sample(
            catalog,
            self.session.observer,
            self.clock(),
            self.config.sampler,
            self.propagator,
        )
        self.session.last_result = result

        self.display(
            render_report(
                result,
                self.session.observer,
                len(catalog),
                self.config.sampler.min_elevation_deg,
                self.session.heading,
                self.tz,
                label=self.config.label,
            )
        )

        if self.config.svg_path:
            self._write_sky_map(result)

        return result

    def _write_sky_map(self, result: SampleResult) -> None:
        svg = render_sky_map(result.visible, self.session.heading) or render_empty_sky_map()
        try:
            with open(self.config.svg_path, "w", encoding="utf-8") as f:
                f.write(svg)
        except OSError as exc:
            # Tracking continues without the map file
            logger.error("Could not write sky map to %s: %s", self.config.svg_path, exc)

    def update_heading(self, heading: float) -> None:
        """Record a new device heading and redraw if anything is overhead."""
        self.session.heading = heading % 360.0

        last = self.session.last_result
        if self.session.state is TrackerState.TRACKING and last is not None and last.visible:
            self.sample_now()

    def run(self, duration: Optional[float] = None) -> None:
        if self.session.state is not TrackerState.TRACKING:
            return
        self.scheduler.run(duration)

    def stop(self) -> None:
        self.scheduler.cancel(SAMPLE_TASK)
        self.scheduler.cancel(REFRESH_TASK)
        self.scheduler.stop()
