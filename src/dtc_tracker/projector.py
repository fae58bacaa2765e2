from typing import Tuple

import numpy as np


COMPASS_DIRECTIONS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)

HIGH_ELEVATION_COLOR = "#4caf50"
MEDIUM_ELEVATION_COLOR = "#ffc107"
LOW_ELEVATION_COLOR = "#ff9800"


def project(
    azimuth_deg: float,
    elevation_deg: float,
    heading_deg: float = 0.0,
    map_radius: float = 1.0,
) -> Tuple[float, float]:
    """Project a look angle onto a polar sky map.

    Returns ``(x, y)`` offsets from the map center with ``y`` growing
    downward. The zenith maps to the center and the horizon to
    ``map_radius``. North is up when ``heading_deg`` is 0; other headings
    rotate the whole map so north stays put as the device turns.
    """
    elevation = float(np.clip(elevation_deg, 0.0, 90.0))
    radius = map_radius * (1 - elevation / 90.0)

    # Azimuth 0° = north (up), increasing clockwise
    angle = np.radians(azimuth_deg - heading_deg - 90.0)
    return float(radius * np.cos(angle)), float(radius * np.sin(angle))


def compass_direction(azimuth_deg: float) -> str:
    """Convert azimuth degrees to one of 16 compass directions."""
    sector = (azimuth_deg % 360.0) / 22.5

    # North's sector is closed at both ends; every other tie rounds up
    if sector <= 0.5:
        return COMPASS_DIRECTIONS[0]
    index = int(np.floor(sector + 0.5)) % 16
    return COMPASS_DIRECTIONS[index]


def elevation_color(elevation_deg: float) -> str:
    if elevation_deg > 60:
        return HIGH_ELEVATION_COLOR
    if elevation_deg > 30:
        return MEDIUM_ELEVATION_COLOR
    return LOW_ELEVATION_COLOR
