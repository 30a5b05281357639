"""Tagged map features and their classification."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from shapely.geometry import LineString, MultiLineString, MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry


__all__ = [
    "Feature",
    "GeometryKind",
    "highway_type",
    "is_park",
    "is_water",
]


class GeometryKind(Enum):
    """Geometry variants a feature can carry."""

    POLYGON = "Polygon"
    MULTIPOLYGON = "MultiPolygon"
    LINESTRING = "LineString"
    MULTILINESTRING = "MultiLineString"

    @property
    def is_area(self) -> bool:
        return self in (GeometryKind.POLYGON, GeometryKind.MULTIPOLYGON)

    @property
    def is_line(self) -> bool:
        return self in (GeometryKind.LINESTRING, GeometryKind.MULTILINESTRING)


_GEOMETRY_KINDS: dict[type[BaseGeometry], GeometryKind] = {
    Polygon: GeometryKind.POLYGON,
    MultiPolygon: GeometryKind.MULTIPOLYGON,
    LineString: GeometryKind.LINESTRING,
    MultiLineString: GeometryKind.MULTILINESTRING,
}


@dataclass(frozen=True)
class Feature:
    """A shapely geometry in (lon, lat) plus its OpenStreetMap tags."""

    geometry: BaseGeometry
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if type(self.geometry) not in _GEOMETRY_KINDS:
            raise TypeError(f"Unsupported feature geometry: {self.geometry.geom_type}")
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    @property
    def kind(self) -> GeometryKind:
        return _GEOMETRY_KINDS[type(self.geometry)]


def is_water(feature: Feature) -> bool:
    return feature.tags.get("natural") == "water"


def is_park(feature: Feature) -> bool:
    return feature.tags.get("leisure") == "park"


def highway_type(feature: Feature) -> str:
    """Return the ``highway`` tag, or an empty string when absent."""
    return feature.tags.get("highway", "") or ""
