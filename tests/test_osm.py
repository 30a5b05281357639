"""Tests for Overpass JSON normalization."""

from __future__ import annotations

from typing import Any

import pytest
from shapely.geometry import Point

from geoart.features import GeometryKind
from geoart.osm import features_from_overpass


def _node(node_id: int, lon: float, lat: float) -> dict[str, Any]:
    return {"type": "node", "id": node_id, "lat": lat, "lon": lon}


def _way(way_id: int, nodes: list[int], tags: dict[str, str] | None = None) -> dict[str, Any]:
    way: dict[str, Any] = {"type": "way", "id": way_id, "nodes": nodes}
    if tags is not None:
        way["tags"] = tags
    return way


def _square(first_id: int, x0: float, y0: float, x1: float, y1: float) -> list[dict[str, Any]]:
    return [
        _node(first_id, x0, y0),
        _node(first_id + 1, x1, y0),
        _node(first_id + 2, x1, y1),
        _node(first_id + 3, x0, y1),
    ]


def _ring(first_id: int) -> list[int]:
    return [first_id, first_id + 1, first_id + 2, first_id + 3, first_id]


def _multipolygon(members: list[tuple[int, str]], **tags: str) -> dict[str, Any]:
    return {
        "type": "relation",
        "id": 1000,
        "members": [{"type": "way", "ref": ref, "role": role} for ref, role in members],
        "tags": {"type": "multipolygon", **tags},
    }


class TestWays:
    """Tests for way conversion."""

    def test_open_highway_is_line(self) -> None:
        payload = {
            "elements": [
                _node(1, 0.0, 0.0),
                _node(2, 1.0, 1.0),
                _way(10, [1, 2], {"highway": "primary", "name": "Main"}),
            ]
        }
        features = features_from_overpass(payload)

        assert len(features) == 1
        assert features[0].kind is GeometryKind.LINESTRING
        assert features[0].tags["highway"] == "primary"
        assert features[0].tags["name"] == "Main"
        assert list(features[0].geometry.coords) == [(0.0, 0.0), (1.0, 1.0)]

    def test_closed_water_way_is_polygon(self) -> None:
        payload = {"elements": [*_square(1, 0, 0, 1, 1), _way(10, _ring(1), {"natural": "water"})]}
        features = features_from_overpass(payload)

        assert len(features) == 1
        assert features[0].kind is GeometryKind.POLYGON
        assert features[0].geometry.area == pytest.approx(1.0)

    def test_closed_highway_stays_line(self) -> None:
        """Test that a roundabout is stroked, not filled."""
        payload = {
            "elements": [*_square(1, 0, 0, 1, 1), _way(10, _ring(1), {"highway": "residential"})]
        }
        features = features_from_overpass(payload)

        assert features[0].kind is GeometryKind.LINESTRING

    def test_untagged_ways_are_skipped(self) -> None:
        payload = {
            "elements": [
                _node(1, 0.0, 0.0),
                _node(2, 1.0, 1.0),
                _way(10, [1, 2]),
                _way(11, [1, 2], {"source": "survey", "created_by": "JOSM"}),
            ]
        }
        assert features_from_overpass(payload) == []

    def test_tagged_nodes_are_skipped(self) -> None:
        payload = {"elements": [{**_node(1, 0.0, 0.0), "tags": {"amenity": "cafe"}}]}
        assert features_from_overpass(payload) == []

    def test_tags_are_read_only(self) -> None:
        payload = {
            "elements": [_node(1, 0, 0), _node(2, 1, 1), _way(10, [1, 2], {"highway": "primary"})]
        }
        feature = features_from_overpass(payload)[0]
        with pytest.raises(TypeError):
            feature.tags["highway"] = "motorway"  # type: ignore[index]


class TestRelations:
    """Tests for multipolygon relations."""

    def test_multipolygon_with_hole(self) -> None:
        """Test that inner members become holes of the outer ring."""
        payload = {
            "elements": [
                *_square(1, 0, 0, 10, 10),
                *_square(11, 4, 4, 6, 6),
                _way(100, _ring(1)),
                _way(101, _ring(11)),
                _multipolygon([(100, "outer"), (101, "inner")], natural="water"),
            ]
        }
        features = features_from_overpass(payload)

        assert len(features) == 1
        lake = features[0]
        assert lake.kind.is_area
        assert lake.tags["natural"] == "water"
        assert lake.tags["type"] == "multipolygon"
        assert lake.geometry.area == pytest.approx(96.0)
        assert not lake.geometry.contains(Point(5, 5))
        assert lake.geometry.contains(Point(1, 1))

    def test_island_inside_lake_is_not_water(self) -> None:
        """Test a lake whose island holds a pond tagged as a second outer ring."""
        payload = {
            "elements": [
                *_square(1, 0, 0, 10, 10),
                *_square(11, 3, 3, 7, 7),
                *_square(21, 4, 4, 6, 6),
                _way(100, _ring(1)),
                _way(101, _ring(11)),
                _way(102, _ring(21)),
                _multipolygon(
                    [(100, "outer"), (101, "inner"), (102, "outer")], natural="water"
                ),
            ]
        }
        features = features_from_overpass(payload)

        assert len(features) == 1
        lake = features[0].geometry
        assert lake.is_valid
        assert lake.contains(Point(1, 1))
        assert not lake.contains(Point(3.5, 5))

    def test_outer_ring_split_across_ways(self) -> None:
        """Test that outer pieces are merged end to end."""
        payload = {
            "elements": [
                *_square(1, 0, 0, 2, 2),
                _way(100, [1, 2, 3]),
                _way(101, [3, 4, 1]),
                _multipolygon([(100, "outer"), (101, "outer")], leisure="park"),
            ]
        }
        features = features_from_overpass(payload)

        assert len(features) == 1
        assert features[0].kind.is_area
        assert features[0].geometry.area == pytest.approx(4.0)

    def test_two_outers_become_multipolygon(self) -> None:
        payload = {
            "elements": [
                *_square(1, 0, 0, 1, 1),
                *_square(11, 5, 5, 6, 6),
                _way(100, _ring(1)),
                _way(101, _ring(11)),
                _multipolygon([(100, "outer"), (101, "outer")], natural="water"),
            ]
        }
        features = features_from_overpass(payload)

        assert features[0].kind is GeometryKind.MULTIPOLYGON
        assert len(features[0].geometry.geoms) == 2
        assert features[0].geometry.area == pytest.approx(2.0)


class TestPayloadValidation:
    def test_empty_elements(self) -> None:
        assert features_from_overpass({"elements": []}) == []

    @pytest.mark.parametrize("payload", [[], {"elements": "nope"}, "text"])
    def test_rejects_non_overpass_payload(self, payload: Any) -> None:
        with pytest.raises(ValueError, match="elements"):
            features_from_overpass(payload)
