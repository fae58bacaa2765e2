from datetime import datetime
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape

import pytz

from .config import DTC_LABEL
from .projector import compass_direction, elevation_color, project
from .sampler import ObserverLocation, SampleResult, VisibleEntry

GENERIC_TITLE = "Satellite Tracker"
BACKGROUND_COLOR = "#0a0e1a"
BORDER_COLOR = "#2c3e50"
RING_COLOR = "#1a2332"
LABEL_COLOR = "#64b5f6"
TEXT_COLOR = "#e0e0e0"


def _fmt(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _svg_open(size: int) -> str:
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{size}" height="{size}" '
        f'viewBox="0 0 {size} {size}">'
    )


def render_empty_sky_map(size: int = 300) -> str:
    """A blank but well-formed SVG for passes with nothing overhead."""
    return _svg_open(size) + "</svg>"


def render_sky_map(
    visible: Sequence[VisibleEntry], heading: float = 0.0, size: int = 300
) -> str:
    """Render the visible satellites on a polar SVG sky map.

    Center = directly overhead, edge = horizon. The whole map is rotated by
    the device heading so the compass labels keep pointing at true north.
    """
    if not visible:
        return ""

    center = size / 2
    radius = size / 2 - 20
    parts: List[str] = [
        _svg_open(size),
        f'<circle cx="{_fmt(center)}" cy="{_fmt(center)}" r="{_fmt(radius)}" '
        f'fill="{BACKGROUND_COLOR}" stroke="{BORDER_COLOR}" stroke-width="2"/>',
    ]

    # Elevation rings
    for fraction in (0.33, 0.67):
        parts.append(
            f'<circle cx="{_fmt(center)}" cy="{_fmt(center)}" r="{_fmt(radius * fraction)}" '
            f'fill="none" stroke="{RING_COLOR}" stroke-width="1" opacity="0.5"/>'
        )

    for label, azimuth in (("N", 0.0), ("E", 90.0), ("S", 180.0), ("W", 270.0)):
        dx, dy = project(azimuth, 0.0, heading, radius + 10)
        parts.append(
            f'<text x="{_fmt(center + dx)}" y="{_fmt(center + dy + 5)}" '
            f'text-anchor="middle" fill="{LABEL_COLOR}" font-size="14" '
            f'font-weight="bold">{label}</text>'
        )

    # Zenith
    parts.append(
        f'<circle cx="{_fmt(center)}" cy="{_fmt(center)}" r="3" '
        f'fill="{LABEL_COLOR}" opacity="0.5"/>'
    )

    for index, entry in enumerate(visible, 1):
        look = entry.look_angle
        dx, dy = project(look.azimuth_deg, look.elevation_deg, heading, radius)
        x, y = center + dx, center + dy
        title = escape(
            f"{entry.record.name}\n{look.elevation_deg:.1f}° elevation\n"
            f"{compass_direction(look.azimuth_deg)} ({look.azimuth_deg:.1f}°)"
        )
        parts.append(
            f'<circle cx="{_fmt(x)}" cy="{_fmt(y)}" r="6" '
            f'fill="{elevation_color(look.elevation_deg)}" opacity="0.8" '
            f'stroke="#fff" stroke-width="1"><title>{title}</title></circle>'
        )
        parts.append(
            f'<text x="{_fmt(x)}" y="{_fmt(y - 10)}" text-anchor="middle" '
            f'fill="{TEXT_COLOR}" font-size="10" opacity="0.7">{index}</text>'
        )

    parts.append("</svg>")
    return "\n".join(parts)


def render_loading(message: str = "Loading satellite data...", detail: str = "") -> str:
    lines = [message]
    if detail:
        lines.append(f"  {detail}")
    return "\n".join(lines)


def render_error(message: str) -> str:
    return f"Error\n{message}\nRun the command again to retry."


def _pluralize_minutes(minutes: int) -> str:
    return f"In {minutes} minute{'s' if minutes != 1 else ''}"


def render_report(
    result: SampleResult,
    observer: Optional[ObserverLocation],
    tracked: int,
    min_elevation: float,
    heading: float = 0.0,
    tz=pytz.UTC,
    updated: Optional[datetime] = None,
    label: Optional[str] = DTC_LABEL,
) -> str:
    """Render one sampling pass as terminal text.

    ``label`` names the tracked set (for example "Starlink Direct-to-Cell");
    without one the title and footer stay generic.
    """
    lines = [f"{label} Tracker" if label else GENERIC_TITLE]
    if observer is not None:
        lines.append(f"{observer.latitude_deg:.4f}°, {observer.longitude_deg:.4f}°")
    lines.append("")

    if result.visible:
        lines.append(f"Currently Overhead ({len(result.visible)})")
        for index, entry in enumerate(result.visible, 1):
            look = entry.look_angle
            lines.append(f"  {index}. {entry.record.name}")
            lines.append(
                f"     Direction: {compass_direction(look.azimuth_deg)} "
                f"({look.azimuth_deg:.1f}°)"
            )
            lines.append(f"     Elevation: {look.elevation_deg:.1f}°")
            lines.append(f"     Distance:  {look.range_km:.0f} km")
        if heading:
            lines.append(f"Compass enabled - map rotated to heading {heading:.0f}°")
        else:
            lines.append("Set a heading to rotate the sky map with your device")
    else:
        lines.append("No Satellites Currently Overhead")
        if result.upcoming:
            lines.append("Next Passes")
            for upcoming in result.upcoming:
                local_time = upcoming.time.astimezone(tz) if upcoming.time.tzinfo else upcoming.time
                lines.append(
                    f"  {upcoming.record.name}: {_pluralize_minutes(upcoming.minutes_until)} "
                    f"({local_time.strftime('%H:%M:%S')})"
                )
        else:
            lines.append("Calculating next passes...")

    if updated is None:
        updated = result.instant
    lines.append("")
    if label:
        lines.append(f"Tracking {tracked} {label} satellites")
    else:
        lines.append(f"Tracking {tracked} satellites")
    lines.append(f"Showing satellites above {min_elevation:g}° elevation")
    if updated is not None:
        stamp = updated.astimezone(tz) if updated.tzinfo else updated
        lines.append(f"Last updated: {stamp.strftime('%H:%M:%S')}")

    return "\n".join(lines)
