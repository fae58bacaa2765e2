import logging
from typing import Optional

import requests

from .config import GEOLOCATION_URL, REQUEST_TIMEOUT_SECONDS
from .errors import LocationUnavailable
from .sampler import ObserverLocation

logger = logging.getLogger(__name__)


class StaticLocator:
    """Locator for coordinates that are already known."""

    def __init__(
        self, latitude: float, longitude: float, altitude: Optional[float] = None
    ):
        self.location = ObserverLocation(latitude, longitude, altitude or 0.0)

    def locate(self) -> ObserverLocation:
        return self.location


class IPGeolocator:
    """Approximate the observer location from the public IP address."""

    def __init__(
        self, url: str = GEOLOCATION_URL, timeout: float = REQUEST_TIMEOUT_SECONDS
    ):
        self.url = url
        self.timeout = timeout

    def locate(self) -> ObserverLocation:
        """Look up the location, raising LocationUnavailable on any failure."""
        logger.info("Looking up location from %s", self.url)
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise LocationUnavailable(str(exc)) from exc

        try:
            latitude, longitude = (float(part) for part in data["loc"].split(","))
            # IP lookups rarely carry an altitude
            altitude = float(data.get("altitude") or 0.0)
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            raise LocationUnavailable("Unusable geolocation response") from exc

        return ObserverLocation(latitude, longitude, altitude)
