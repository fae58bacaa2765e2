import math

import pytest

from dtc_tracker.projector import compass_direction, elevation_color, project


class TestProject:
    @pytest.mark.parametrize("azimuth", [0.0, 45.0, 137.5, 270.0, 359.9])
    def test_zenith_is_center(self, azimuth):
        """Test elevation 90° lands on the center for any azimuth."""
        x, y = project(azimuth, 90.0, 0.0, 130.0)
        assert x == pytest.approx(0.0, abs=1e-9)
        assert y == pytest.approx(0.0, abs=1e-9)

    @pytest.mark.parametrize("azimuth", [0.0, 45.0, 137.5, 270.0, 359.9])
    def test_horizon_is_on_the_rim(self, azimuth):
        """Test elevation 0° lands exactly map_radius from the center."""
        x, y = project(azimuth, 0.0, 0.0, 130.0)
        assert math.hypot(x, y) == pytest.approx(130.0)

    def test_cardinal_directions(self):
        """Test north is up and east is right with y growing downward."""
        north = project(0.0, 0.0, 0.0, 100.0)
        east = project(90.0, 0.0, 0.0, 100.0)
        south = project(180.0, 0.0, 0.0, 100.0)
        assert north == pytest.approx((0.0, -100.0), abs=1e-9)
        assert east == pytest.approx((100.0, 0.0), abs=1e-9)
        assert south == pytest.approx((0.0, 100.0), abs=1e-9)

    def test_radius_is_linear_in_elevation(self):
        x, y = project(0.0, 45.0, 0.0, 100.0)
        assert math.hypot(x, y) == pytest.approx(50.0)

    def test_heading_counter_rotates_the_map(self):
        """Test facing east puts a northern satellite on the left."""
        x, y = project(0.0, 0.0, 90.0, 100.0)
        assert (x, y) == pytest.approx((-100.0, 0.0), abs=1e-9)

        # Facing the satellite puts it straight up
        x, y = project(200.0, 30.0, 200.0, 90.0)
        assert (x, y) == pytest.approx((0.0, -60.0), abs=1e-9)

    def test_below_horizon_stays_on_canvas(self):
        x, y = project(10.0, -20.0, 0.0, 100.0)
        assert math.hypot(x, y) == pytest.approx(100.0)


class TestCompassDirection:
    @pytest.mark.parametrize(
        "azimuth, expected",
        [
            (0.0, "N"),
            (5.0, "N"),
            (11.25, "N"),
            (348.75, "N"),
            (355.0, "N"),
            (360.0, "N"),
            (11.26, "NNE"),
            (22.5, "NNE"),
            (45.0, "NE"),
            (90.0, "E"),
            (180.0, "S"),
            (200.0, "SSW"),
            (270.0, "W"),
            (337.5, "NNW"),
            (-90.0, "W"),
        ],
    )
    def test_labels(self, azimuth, expected):
        assert compass_direction(azimuth) == expected

    @pytest.mark.parametrize(
        "azimuth, expected",
        [
            (33.75, "NE"),
            (56.25, "ENE"),
            (191.25, "SSW"),
            (303.75, "NW"),
            (326.25, "NNW"),
        ],
    )
    def test_boundaries_round_clockwise(self, azimuth, expected):
        """Test a bearing exactly between two points takes the clockwise one."""
        assert compass_direction(azimuth) == expected


def test_elevation_color_bands():
    assert elevation_color(75.0) == "#4caf50"
    assert elevation_color(60.0) == "#ffc107"
    assert elevation_color(45.0) == "#ffc107"
    assert elevation_color(30.0) == "#ff9800"
