"""Geometry kernel for WGS84 longitude/latitude data.

The feature clipper lives in areascope.geometry.clip; it depends on the
layer feature model and is imported from there directly.
"""

from areascope.geometry.kernel import (
    EARTH_RADIUS_M,
    bounds_of,
    centroid,
    haversine_distance,
    line_length,
    point_in_polygon,
    polygon_area,
    validate_geometry,
)
from areascope.geometry.model import Bounds, Geometry

__all__ = [
    "EARTH_RADIUS_M",
    "Bounds",
    "Geometry",
    "bounds_of",
    "centroid",
    "haversine_distance",
    "line_length",
    "point_in_polygon",
    "polygon_area",
    "validate_geometry",
]
