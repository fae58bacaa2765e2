from dataclasses import dataclass, field
from typing import Optional, Tuple


# Constants
TLE_URL = "https://celestrak.org/NORAD/elements/gp.php?GROUP=starlink&FORMAT=tle"
GEOLOCATION_URL = "https://ipinfo.io/json"
REQUEST_TIMEOUT_SECONDS = 10

# Direct-to-Cell satellites carry one of these in their name
DTC_NAME_FILTERS = ("dtc", "direct to cell", "direct-to-cell")
DTC_LABEL = "Starlink Direct-to-Cell"

# Starlink uses 25° minimum for reliable service
MIN_ELEVATION_DEGREES = 25.0

SCAN_START_MINUTES = 1
SCAN_END_MINUTES = 180
SCAN_STEP_MINUTES = 2
SCAN_LIMIT = 100
MAX_UPCOMING_PASSES = 5

SAMPLE_INTERVAL_SECONDS = 5.0
CATALOG_REFRESH_SECONDS = 30 * 60.0


@dataclass(frozen=True)
class SamplerConfig:
    """Thresholds and look-ahead parameters for one sampling pass."""

    min_elevation_deg: float = MIN_ELEVATION_DEGREES
    scan_start_minutes: int = SCAN_START_MINUTES
    scan_end_minutes: int = SCAN_END_MINUTES
    scan_step_minutes: int = SCAN_STEP_MINUTES
    scan_limit: Optional[int] = SCAN_LIMIT
    max_upcoming: int = MAX_UPCOMING_PASSES


@dataclass(frozen=True)
class TrackerConfig:
    """Everything the polling loop needs besides its collaborators."""

    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    tle_url: str = TLE_URL
    name_filters: Tuple[str, ...] = DTC_NAME_FILTERS
    sample_interval: float = SAMPLE_INTERVAL_SECONDS
    catalog_refresh_interval: float = CATALOG_REFRESH_SECONDS
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    svg_path: Optional[str] = None

    @property
    def label(self) -> Optional[str]:
        """Name for the tracked set in reports; None when it is not the DTC set."""
        if tuple(self.name_filters) == DTC_NAME_FILTERS:
            return DTC_LABEL
        return None
