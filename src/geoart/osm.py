"""Adapt raw Overpass JSON into tagged shapely features.

The conversion itself (way area rules, multipolygon ring assembly) is done by
``osm2geojson``; this module only validates the payload and turns the
resulting GeoJSON features into :class:`~geoart.features.Feature` objects.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import osm2geojson
from shapely.geometry import shape

from .features import Feature, GeometryKind


__all__ = ["features_from_overpass"]

logger = logging.getLogger(__name__)

# Tags that carry no meaning on their own
UNINTERESTING_TAGS = frozenset(
    {
        "source",
        "source_ref",
        "source:ref",
        "history",
        "attribution",
        "created_by",
        "note",
        "fixme",
    }
)

_KINDS = {kind.value for kind in GeometryKind}


def _is_interesting(tags: Mapping[str, str]) -> bool:
    return any(key not in UNINTERESTING_TAGS for key in tags)


def _to_feature(geojson: Mapping[str, Any]) -> Feature | None:
    properties = geojson.get("properties") or {}
    tags = properties.get("tags") or {}
    geometry = geojson.get("geometry")
    if not geometry or not _is_interesting(tags):
        return None
    if geometry.get("type") not in _KINDS:
        return None

    geom = shape(geometry)
    if geom.is_empty:
        return None
    if not geom.is_valid:
        logger.debug(
            "Repairing invalid %s for %s/%s",
            geom.geom_type,
            properties.get("type"),
            properties.get("id"),
        )
        geom = geom.buffer(0) if GeometryKind(geom.geom_type).is_area else geom
        if geom.is_empty or geom.geom_type not in _KINDS:
            return None
    return Feature(geom, tags)


def features_from_overpass(payload: Mapping[str, Any]) -> list[Feature]:
    """Convert an Overpass ``out body`` JSON document into features.

    Args:
        payload: Parsed Overpass JSON with an ``elements`` list of nodes,
            ways and relations.

    Returns:
        Line and area features with their tags, in payload order. Nodes,
        untagged relation members and geometries the renderer cannot draw
        are left out.

    Raises:
        ValueError: If the payload is not an Overpass JSON object.
    """
    if not isinstance(payload, Mapping) or not isinstance(payload.get("elements", []), list):
        raise ValueError("Overpass payload must be a JSON object with an 'elements' list.")
    if not payload.get("elements"):
        return []

    collection = osm2geojson.json2geojson(dict(payload), filter_used_refs=True)
    features = [
        feature
        for feature in (_to_feature(item) for item in collection.get("features", []))
        if feature is not None
    ]

    logger.info(
        "Normalized %d features from %d elements",
        len(features),
        len(payload["elements"]),
    )
    return features
