"""Tests for bounding boxes and the pixel projection."""

from __future__ import annotations

import math

import pytest

from geoart.exceptions import InvalidBoundsError, InvalidInputError
from geoart.projection import (
    BoundingBox,
    GeoPoint,
    edges_from_center_radius,
    make_projector,
)


CENTERS = [
    GeoPoint(48.8566, 2.3522),
    GeoPoint(-33.8688, 151.2093),
    GeoPoint(0.0, 0.0),
    GeoPoint(64.1466, -21.9426),
]


class TestGeoPoint:
    @pytest.mark.parametrize(
        ("lat", "lon"),
        [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5), (math.nan, 0.0), (0.0, math.inf)],
    )
    def test_rejects_invalid_coordinates(self, lat: float, lon: float) -> None:
        with pytest.raises(InvalidInputError):
            GeoPoint(lat, lon)

    def test_invalid_input_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            GeoPoint(100.0, 0.0)


class TestEdgesFromCenterRadius:
    """Tests for the geodesic bounding box."""

    @pytest.mark.parametrize("center", CENTERS)
    @pytest.mark.parametrize("radius", [100.0, 1000.0, 8000.0])
    def test_box_is_valid_and_contains_center(self, center: GeoPoint, radius: float) -> None:
        box = edges_from_center_radius(center, radius)
        assert box.west < box.east
        assert box.south < box.north
        assert box.contains(center)

    def test_box_size_matches_radius(self) -> None:
        """Test that the box spans about two radii north to south."""
        box = edges_from_center_radius(GeoPoint(0.0, 0.0), 8000.0)
        meters_per_degree = 110_574.0
        assert box.height * meters_per_degree == pytest.approx(16_000.0, rel=0.01)
        assert box.width > 0

    def test_box_widens_in_longitude_away_from_equator(self) -> None:
        equator = edges_from_center_radius(GeoPoint(0.0, 10.0), 5000.0)
        north = edges_from_center_radius(GeoPoint(60.0, 10.0), 5000.0)
        assert north.width > equator.width

    def test_larger_radius_gives_larger_box(self) -> None:
        center = CENTERS[0]
        small = edges_from_center_radius(center, 1000.0)
        large = edges_from_center_radius(center, 2000.0)
        assert large.west < small.west
        assert large.north > small.north

    def test_circle_over_pole_raises(self) -> None:
        """Test that a circle folding over the pole is rejected."""
        with pytest.raises(InvalidBoundsError, match="pole"):
            edges_from_center_radius(GeoPoint(89.99, 10.0), 10_000.0)

    def test_circle_across_antimeridian_raises(self) -> None:
        with pytest.raises(InvalidBoundsError, match="antimeridian"):
            edges_from_center_radius(GeoPoint(-17.0, 179.99), 5_000.0)

    def test_circle_near_antimeridian_is_accepted(self) -> None:
        box = edges_from_center_radius(GeoPoint(-17.0, 179.5), 5_000.0)
        assert box.east < 180.0
        assert box.contains(GeoPoint(-17.0, 179.5))

    @pytest.mark.parametrize("radius", [0.0, -5.0, math.nan, math.inf])
    def test_rejects_bad_radius(self, radius: float) -> None:
        with pytest.raises(InvalidInputError):
            edges_from_center_radius(CENTERS[0], radius)


class TestMakeProjector:
    """Tests for the linear lon/lat to pixel mapping."""

    def test_corners_map_exactly(self) -> None:
        box = BoundingBox(west=2.0, south=48.0, east=3.0, north=49.0)
        project = make_projector(box, 5000, 6000)

        assert project(box.west, box.north) == (0.0, 0.0)
        assert project(box.east, box.south) == (5000.0, 6000.0)
        assert project(box.west, box.south) == (0.0, 6000.0)
        assert project(box.east, box.north) == (5000.0, 0.0)

    def test_center_maps_to_canvas_center(self) -> None:
        box = BoundingBox(west=-1.0, south=-1.0, east=1.0, north=1.0)
        project = make_projector(box, 400, 200)
        assert project(0.0, 0.0) == pytest.approx((200.0, 100.0))

    def test_monotonic(self) -> None:
        """Test that x grows with longitude and y falls with latitude."""
        box = BoundingBox(west=10.0, south=20.0, east=11.0, north=21.0)
        project = make_projector(box, 100, 100)

        x1, y1 = project(10.2, 20.2)
        x2, y2 = project(10.8, 20.8)
        assert x2 > x1
        assert y2 < y1

    def test_points_outside_box_leave_canvas(self) -> None:
        box = BoundingBox(west=0.0, south=0.0, east=1.0, north=1.0)
        project = make_projector(box, 100, 100)
        x, y = project(-0.5, 1.5)
        assert x < 0
        assert y < 0

    @pytest.mark.parametrize(
        "box",
        [
            BoundingBox(west=1.0, south=0.0, east=1.0, north=1.0),
            BoundingBox(west=0.0, south=1.0, east=1.0, north=1.0),
            BoundingBox(west=2.0, south=0.0, east=1.0, north=1.0),
            BoundingBox(west=0.0, south=0.0, east=math.nan, north=1.0),
        ],
    )
    def test_degenerate_box_raises(self, box: BoundingBox) -> None:
        with pytest.raises(InvalidBoundsError):
            make_projector(box, 100, 100)

    def test_empty_canvas_raises(self) -> None:
        box = BoundingBox(west=0.0, south=0.0, east=1.0, north=1.0)
        with pytest.raises(InvalidBoundsError):
            make_projector(box, 0, 100)
