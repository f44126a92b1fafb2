"""Export a FeatureCollection to a GeoJSON dict (RFC 7946 compliant).

GeoJSON coordinates are [lon, lat], already the internal storage
convention, so geometries pass through unchanged.
"""

from __future__ import annotations

from typing import Optional

from areascope.layers.layer import Feature, FeatureCollection


def export_geojson(collection: FeatureCollection, name: Optional[str] = None) -> dict:
    """Export a FeatureCollection to a GeoJSON FeatureCollection dict.

    Args:
        collection: Features to export (typically a clipped layer).
        name: Optional collection name, written as a foreign member.

    Returns:
        Dict representing a valid GeoJSON FeatureCollection.
    """
    result: dict = {
        "type": "FeatureCollection",
        "features": [_feature_to_geojson(feature) for feature in collection],
    }
    if name:
        result["name"] = name
    return result


def _feature_to_geojson(feature: Feature) -> dict:
    """Convert a Feature to a GeoJSON Feature dict."""
    out: dict = {
        "type": "Feature",
        "geometry": feature.geometry.to_geojson(),
        "properties": dict(feature.properties),
    }
    if feature.feature_id is not None:
        out["id"] = feature.feature_id
    return out
