"""Geometry and feature builders shared by the test suite."""

from __future__ import annotations

import math

from areascope.geometry.kernel import EARTH_RADIUS_M
from areascope.geometry.model import Geometry
from areascope.layers.layer import Feature


def make_rect(lon0: float, lat0: float, lon1: float, lat1: float) -> Geometry:
    """Closed lon/lat rectangle polygon."""
    return Geometry(
        type="Polygon",
        coordinates=[[[lon0, lat0], [lon1, lat0], [lon1, lat1], [lon0, lat1], [lon0, lat0]]],
    )


def make_rect_with_area(
    area_m2: float,
    lon0: float = 0.0,
    lat0: float = 0.0,
    width_deg: float = 0.01,
) -> Geometry:
    """Rectangle whose spherical area is exactly area_m2.

    For a lon/lat rectangle the ring formula reduces to
    R² · Δλ · (sin φ1 - sin φ0), so the top latitude can be solved for.
    """
    dlon = math.radians(width_deg)
    sin_top = math.sin(math.radians(lat0)) + area_m2 / (EARTH_RADIUS_M ** 2 * dlon)
    lat1 = math.degrees(math.asin(sin_top))
    return make_rect(lon0, lat0, lon0 + width_deg, lat1)


def point(lon: float, lat: float, **props) -> Feature:
    return Feature(geometry=Geometry("Point", [lon, lat]), properties=props)


def line(*coords, **props) -> Feature:
    return Feature(geometry=Geometry("LineString", [list(c) for c in coords]), properties=props)


def polygon_feature(geometry: Geometry, feature_id: str | None = None, **props) -> Feature:
    return Feature(geometry=geometry, properties=props, feature_id=feature_id)
