import re
from datetime import datetime, timedelta

import pytz

from dtc_tracker.catalog import CatalogRecord
from dtc_tracker.sampler import (
    LookAngle,
    ObserverLocation,
    SampleResult,
    UpcomingPass,
    VisibleEntry,
)
from dtc_tracker.views import (
    render_empty_sky_map,
    render_error,
    render_loading,
    render_report,
    render_sky_map,
)

NOW = datetime(2024, 6, 21, 12, 30, 45, tzinfo=pytz.UTC)
OBSERVER = ObserverLocation(37.7749, -122.4194, 16.0)


def _visible(name, azimuth, elevation, range_km=612.4):
    return VisibleEntry(
        CatalogRecord(name, "1", "2"), LookAngle(azimuth, elevation, range_km)
    )


def _label_position(svg, label):
    match = re.search(r'<text x="([^"]+)" y="([^"]+)"[^>]*>' + label + "</text>", svg)
    assert match is not None
    return match.group(1), match.group(2)


class TestRenderSkyMap:
    def test_empty_when_nothing_visible(self):
        assert render_sky_map([]) == ""

    def test_one_marker_per_satellite(self):
        """Test every satellite gets a colored dot, an index and a tooltip."""
        svg = render_sky_map(
            [_visible("STARLINK-1 [DTC]", 0.0, 70.0), _visible("STARLINK-2", 90.0, 40.0)]
        )
        assert svg.startswith("<svg")
        assert svg.endswith("</svg>")
        assert svg.count("<title>") == 2
        assert "#4caf50" in svg
        assert "#ffc107" in svg
        assert ">1</text>" in svg
        assert ">2</text>" in svg
        assert "70.0° elevation" in svg
        assert "N (0.0°)" in svg

    def test_zenith_satellite_is_centered(self):
        svg = render_sky_map([_visible("TOP", 123.0, 90.0)], size=300)
        assert '<circle cx="150" cy="150" r="6"' in svg

    def test_names_are_escaped(self):
        svg = render_sky_map([_visible("A&B <test>", 10.0, 50.0)])
        assert "A&amp;B &lt;test&gt;" in svg
        assert "<test>" not in svg

    def test_empty_placeholder_is_valid_svg(self):
        svg = render_empty_sky_map(200)
        assert svg.startswith("<svg")
        assert svg.endswith("</svg>")
        assert 'width="200" height="200"' in svg

    def test_north_up_labels(self):
        svg = render_sky_map([_visible("A", 0.0, 50.0)], heading=0.0)
        assert _label_position(svg, "N") == ("150", "15")
        assert _label_position(svg, "E") == ("290", "155")
        assert _label_position(svg, "S") == ("150", "295")
        assert _label_position(svg, "W") == ("10", "155")

    def test_heading_rotates_labels(self):
        """Test facing east puts E at the top and N on the left."""
        turned = render_sky_map([_visible("A", 0.0, 50.0)], heading=90.0)
        assert _label_position(turned, "E") == ("150", "15")
        assert _label_position(turned, "N") == ("10", "155")


class TestRenderReport:
    def test_visible_report(self):
        result = SampleResult(
            visible=[_visible("STARLINK-11001 [DTC]", 200.0, 61.23)], instant=NOW
        )
        text = render_report(result, OBSERVER, 42, 25.0)

        assert "37.7749°, -122.4194°" in text
        assert "Currently Overhead (1)" in text
        assert "1. STARLINK-11001 [DTC]" in text
        assert "Direction: SSW (200.0°)" in text
        assert "Elevation: 61.2°" in text
        assert "612 km" in text
        assert "Tracking 42 Starlink Direct-to-Cell satellites" in text
        assert "above 25° elevation" in text
        assert "Last updated: 12:30:45" in text

    def test_generic_wording_without_label(self):
        """Test a name filter other than the DTC one is not called Direct-to-Cell."""
        result = SampleResult(visible=[_visible("ONEWEB-0012", 90.0, 40.0)], instant=NOW)
        text = render_report(result, OBSERVER, 3, 25.0, label=None)

        assert text.startswith("Satellite Tracker")
        assert "Tracking 3 satellites" in text
        assert "Direct-to-Cell" not in text

    def test_next_passes(self):
        """Test the pass list with singular and plural minutes."""
        result = SampleResult(
            upcoming=[
                UpcomingPass(CatalogRecord("A", "1", "2"), NOW + timedelta(minutes=1), 1),
                UpcomingPass(CatalogRecord("B", "1", "2"), NOW + timedelta(minutes=7), 7),
            ],
            instant=NOW,
        )
        text = render_report(result, OBSERVER, 10, 25.0)

        assert "No Satellites Currently Overhead" in text
        assert "Next Passes" in text
        assert "A: In 1 minute (12:31:45)" in text
        assert "B: In 7 minutes (12:37:45)" in text

    def test_times_in_local_zone(self):
        result = SampleResult(
            upcoming=[
                UpcomingPass(CatalogRecord("A", "1", "2"), NOW + timedelta(minutes=3), 3)
            ],
            instant=NOW,
        )
        text = render_report(result, OBSERVER, 1, 25.0, tz=pytz.timezone("US/Pacific"))
        assert "(05:33:45)" in text
        assert "Last updated: 05:30:45" in text

    def test_nothing_found(self):
        text = render_report(SampleResult(instant=NOW), None, 0, 0.0)
        assert "Calculating next passes..." in text
        assert "above 0° elevation" in text

    def test_compass_hint(self):
        result = SampleResult(visible=[_visible("A", 0.0, 50.0)], instant=NOW)
        assert "heading 90°" in render_report(result, OBSERVER, 1, 25.0, heading=90.0)
        assert "Set a heading" in render_report(result, OBSERVER, 1, 25.0)


def test_loading_and_error_views():
    assert render_loading("Getting your location...") == "Getting your location..."
    assert "Location acquired" in render_loading("Loading", "Location acquired")
    assert render_error("boom").startswith("Error\nboom")
