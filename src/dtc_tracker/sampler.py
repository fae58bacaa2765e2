import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pytz
from skyfield.api import EarthSatellite, load, wgs84

from .catalog import CatalogRecord
from .config import SamplerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObserverLocation:
    latitude_deg: float
    longitude_deg: float
    altitude_m: float = 0.0


@dataclass(frozen=True)
class LookAngle:
    azimuth_deg: float
    elevation_deg: float
    range_km: float


@dataclass(frozen=True)
class VisibleEntry:
    record: CatalogRecord
    look_angle: LookAngle


@dataclass(frozen=True)
class UpcomingPass:
    record: CatalogRecord
    time: datetime
    minutes_until: int


@dataclass(frozen=True)
class SampleResult:
    """Satellites above the threshold now, or the next passes if none are."""

    visible: List[VisibleEntry] = field(default_factory=list)
    upcoming: List[UpcomingPass] = field(default_factory=list)
    instant: Optional[datetime] = None


def as_utc(when: datetime) -> datetime:
    """Return ``when`` as an aware UTC datetime; naive values are UTC."""
    if when.tzinfo is None:
        return when.replace(tzinfo=pytz.UTC)
    return when.astimezone(pytz.UTC)


class SkyfieldPropagator:
    """Computes look angles with Skyfield's SGP4 satellites."""

    def __init__(self, ts=None):
        self.ts = ts if ts is not None else load.timescale()
        self._satellites: Dict[str, Tuple[CatalogRecord, EarthSatellite]] = {}
        self._observers: Dict[ObserverLocation, object] = {}

    def _satellite(self, record: CatalogRecord) -> EarthSatellite:
        # One entry per designation; a newer element set replaces the old one
        cached = self._satellites.get(record.name)
        if cached is not None and cached[0] == record:
            return cached[1]

        satellite = EarthSatellite(record.line1, record.line2, record.name, self.ts)
        self._satellites[record.name] = (record, satellite)
        return satellite

    def _topos(self, observer: ObserverLocation):
        topos = self._observers.get(observer)
        if topos is None:
            topos = wgs84.latlon(
                observer.latitude_deg,
                observer.longitude_deg,
                elevation_m=observer.altitude_m,
            )
            self._observers[observer] = topos
        return topos

    def look_angle(
        self, record: CatalogRecord, observer: ObserverLocation, when: datetime
    ) -> Optional[LookAngle]:
        """Look angle of ``record`` at ``when``, or None if SGP4 gave up."""
        t = self.ts.from_datetime(as_utc(when))
        topocentric = (self._satellite(record) - self._topos(observer)).at(t)

        # Skyfield reports decayed or malformed elements through ``message``
        message = getattr(topocentric, "message", None)
        if message:
            logger.debug("Propagation failed for %s: %s", record.name, message)
            return None

        alt, az, distance = topocentric.altaz()
        if np.isnan(alt.degrees) or np.isnan(az.degrees):
            return None

        return LookAngle(
            azimuth_deg=float(az.degrees) % 360.0,
            elevation_deg=float(alt.degrees),
            range_km=float(distance.km),
        )


def _evaluate(
    propagator, record: CatalogRecord, observer: ObserverLocation, when: datetime
) -> Optional[LookAngle]:
    try:
        return propagator.look_angle(record, observer, when)
    except Exception as exc:
        # One bad element set must not end the pass
        logger.debug("Skipping %s: %s", record.name, exc)
        return None


def find_visible(
    catalog: Sequence[CatalogRecord],
    observer: ObserverLocation,
    now: datetime,
    config: SamplerConfig,
    propagator,
) -> List[VisibleEntry]:
    """Records above the elevation threshold at ``now``, highest first."""
    visible = []
    for record in catalog:
        look = _evaluate(propagator, record, observer, now)
        if look is not None and look.elevation_deg > config.min_elevation_deg:
            visible.append(VisibleEntry(record, look))

    # Stable, so equal elevations keep catalog order
    return sorted(visible, key=lambda entry: entry.look_angle.elevation_deg, reverse=True)


def find_upcoming(
    catalog: Sequence[CatalogRecord],
    observer: ObserverLocation,
    now: datetime,
    config: SamplerConfig,
    propagator,
) -> List[UpcomingPass]:
    """Scan forward in time for the first few records to clear the threshold."""
    candidates = catalog if config.scan_limit is None else catalog[: config.scan_limit]
    upcoming: List[UpcomingPass] = []
    found = set()

    for minutes in range(
        config.scan_start_minutes, config.scan_end_minutes + 1, config.scan_step_minutes
    ):
        future_time = now + timedelta(minutes=minutes)

        for record in candidates:
            if record.name in found:
                continue

            look = _evaluate(propagator, record, observer, future_time)
            if look is None or look.elevation_deg <= config.min_elevation_deg:
                continue

            found.add(record.name)
            upcoming.append(UpcomingPass(record, future_time, minutes))
            if len(upcoming) >= config.max_upcoming:
                break

        if len(upcoming) >= config.max_upcoming:
            break

    upcoming.sort(key=lambda p: p.minutes_until)
    return upcoming


def sample(
    catalog: Sequence[CatalogRecord],
    observer: Optional[ObserverLocation],
    now: datetime,
    config: Optional[SamplerConfig] = None,
    propagator=None,
) -> SampleResult:
    """Compute the visible satellites at ``now`` and, if none, the next passes.

    The instant is always passed in; nothing here reads the clock, so the
    same inputs give the same result.
    """
    if config is None:
        config = SamplerConfig()

    if observer is None or not catalog:
        logger.debug("Waiting for location and satellite data...")
        return SampleResult(instant=now)

    if propagator is None:
        propagator = SkyfieldPropagator()

    catalog = list(catalog)
    visible = find_visible(catalog, observer, now, config, propagator)

    upcoming: List[UpcomingPass] = []
    if not visible:
        logger.debug("No satellites currently visible, calculating next passes...")
        upcoming = find_upcoming(catalog, observer, now, config, propagator)

    return SampleResult(visible=visible, upcoming=upcoming, instant=now)
