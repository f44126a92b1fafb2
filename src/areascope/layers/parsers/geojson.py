"""Parse GeoJSON (RFC 7946) into a FeatureCollection using stdlib json.

Handles FeatureCollection, Feature and bare geometry objects. Properties
are passed through with non-scalar values stringified. Coordinates are
already in [lon, lat] order.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from areascope.geometry.model import GEOMETRY_TYPES, Geometry
from areascope.layers.layer import Feature, FeatureCollection, PropertyValue


def parse_geojson(geojson: str | dict) -> FeatureCollection:
    """Parse GeoJSON content into a FeatureCollection.

    Args:
        geojson: Raw GeoJSON text or an already-decoded dict.

    Returns:
        FeatureCollection of parsed features. Returns an empty collection
        on parse errors; features with missing or unsupported geometry are
        skipped.
    """
    if isinstance(geojson, dict):
        data = geojson
    else:
        try:
            data = json.loads(geojson)
        except (json.JSONDecodeError, TypeError):
            logger.warning("GeoJSON parse failed: invalid JSON")
            return FeatureCollection()

    if not isinstance(data, dict):
        return FeatureCollection()

    raw_features: list = []
    if data.get("type") == "FeatureCollection":
        raw_features = data.get("features") or []
    elif data.get("type") == "Feature":
        raw_features = [data]
    elif data.get("type") in GEOMETRY_TYPES:
        raw_features = [{"type": "Feature", "geometry": data, "properties": {}}]

    features: list[Feature] = []
    skipped = 0
    for idx, raw in enumerate(raw_features):
        feature = _parse_feature(raw, idx)
        if feature is None:
            skipped += 1
        else:
            features.append(feature)

    if skipped:
        logger.debug(f"GeoJSON: skipped {skipped} feature(s) without usable geometry")
    return FeatureCollection.of(features)


def _scalar(value: Any) -> PropertyValue:
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    return json.dumps(value)


def _parse_feature(raw: Any, idx: int) -> Feature | None:
    """Parse a single GeoJSON Feature dict into a Feature."""
    if not isinstance(raw, dict):
        return None

    geometry = raw.get("geometry")
    if not isinstance(geometry, dict):
        return None

    geom_type = geometry.get("type", "")
    coordinates = geometry.get("coordinates")
    if geom_type not in GEOMETRY_TYPES or coordinates is None:
        return None

    properties = raw.get("properties") or {}
    if not isinstance(properties, dict):
        properties = {}

    feature_id = raw.get("id", f"geojson-{idx}")
    if not isinstance(feature_id, str):
        feature_id = str(feature_id)

    return Feature(
        geometry=Geometry(type=geom_type, coordinates=coordinates),
        properties={str(k): _scalar(v) for k, v in properties.items()},
        feature_id=feature_id,
    )
