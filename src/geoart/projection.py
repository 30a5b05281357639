"""Bounding boxes and the flat lon/lat to pixel projection."""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from pyproj import Geod

from .exceptions import InvalidBoundsError, InvalidInputError
from .render_constants import CIRCLE_STEPS


__all__ = [
    "BoundingBox",
    "GeoPoint",
    "Projector",
    "edges_from_center_radius",
    "make_projector",
]

Projector = Callable[[float, float], tuple[float, float]]

_GEOD = Geod(ellps="WGS84")


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 location in degrees."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.lat) and math.isfinite(self.lon)):
            raise InvalidInputError(f"Coordinates must be finite, got {self.lat}, {self.lon}")
        if not -90.0 <= self.lat <= 90.0:
            raise InvalidInputError(f"Latitude {self.lat} is outside [-90, 90]")
        if not -180.0 <= self.lon <= 180.0:
            raise InvalidInputError(f"Longitude {self.lon} is outside [-180, 180]")


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in degrees."""

    west: float
    south: float
    east: float
    north: float

    @property
    def width(self) -> float:
        return self.east - self.west

    @property
    def height(self) -> float:
        return self.north - self.south

    def contains(self, point: GeoPoint) -> bool:
        """Return True if the point lies strictly inside the box."""
        return self.west < point.lon < self.east and self.south < point.lat < self.north


def edges_from_center_radius(
    center: GeoPoint,
    radius_m: float,
    steps: int = CIRCLE_STEPS,
) -> BoundingBox:
    """Compute the bounding box of a geodesic circle around a point.

    The circle is approximated by ``steps`` points at equal azimuth spacing,
    each ``radius_m`` meters away along the WGS84 ellipsoid. Taking the box of
    that polygon keeps the area roughly square on the ground at any latitude.

    Args:
        center: Center of the circle.
        radius_m: Circle radius in meters.
        steps: Number of points on the circle.

    Returns:
        The (west, south, east, north) box of the circle.

    Raises:
        InvalidInputError: If the radius is not a positive finite number.
        InvalidBoundsError: If the circle reaches a pole or crosses the
            antimeridian, where a lon/lat box cannot enclose it.
    """
    if not math.isfinite(radius_m) or radius_m <= 0:
        raise InvalidInputError(f"Radius must be a positive number of meters, got {radius_m}")

    azimuths = np.linspace(0.0, 360.0, steps, endpoint=False)
    lons, lats, _ = _GEOD.fwd(
        np.full(steps, center.lon),
        np.full(steps, center.lat),
        azimuths,
        np.full(steps, float(radius_m)),
    )
    box = BoundingBox(
        west=float(np.min(lons)),
        south=float(np.min(lats)),
        east=float(np.max(lons)),
        north=float(np.max(lats)),
    )
    # Longitudes wrap at +-180 and latitudes fold back over a pole
    if box.width > 180.0 or not box.contains(center):
        raise InvalidBoundsError(
            f"A {radius_m:g} m circle around {center.lat}, {center.lon} crosses a pole "
            "or the antimeridian"
        )
    return box


def make_projector(box: BoundingBox, width: float, height: float) -> Projector:
    """Build a linear mapping from (lon, lat) to pixel (x, y).

    Row 0 is the top of the image, so y grows as latitude decreases.

    Raises:
        InvalidBoundsError: If the box or the canvas has no area.
    """
    dx = box.width
    dy = box.height
    if not dx > 0 or not dy > 0:
        raise InvalidBoundsError(f"Invalid bounds: {box}")
    if not width > 0 or not height > 0:
        raise InvalidBoundsError(f"Invalid canvas size: {width}x{height}")

    west, south = box.west, box.south

    def project(lon: float, lat: float) -> tuple[float, float]:
        x = (lon - west) / dx * width
        y = (1 - (lat - south) / dy) * height
        return x, y

    return project
