"""Geometry kernel — containment, area, length, centroid and bounds on WGS84.

Coordinates are longitude/latitude degrees, never treated as Cartesian
for measurement:
    - Areas use the spherical ring formula
      |Σ (λ2 - λ1)(2 + sin φ1 + sin φ2)| · R² / 2
      which is also the formula behind the selection area readout, so a
      redrawn selection and a saved area of the same shape measure the same.
    - Lengths use great-circle (haversine) segment distances.

Point-in-polygon uses ray casting (as in the zone checker) with closed
semantics: points on a ring boundary count as inside.

All functions are pure and safe to call from any area computation.
"""

from __future__ import annotations

import math
from typing import Iterator, Sequence

from areascope.errors import DegenerateGeometryError
from areascope.geometry.model import GEOMETRY_TYPES, Bounds, Geometry

EARTH_RADIUS_M = 6_371_000.0

# Tolerance (degrees) for the on-boundary test
_BOUNDARY_EPS = 1e-12


# ---------------------------------------------------------------------------
# Coordinate iteration
# ---------------------------------------------------------------------------

def _polygons_of(geometry: Geometry) -> list[list]:
    """Return the polygon coordinate arrays of a Polygon or MultiPolygon."""
    if geometry.type == "Polygon":
        return [geometry.coordinates]
    if geometry.type == "MultiPolygon":
        return list(geometry.coordinates)
    return []


def _lines_of(geometry: Geometry) -> list[list]:
    """Return the line coordinate arrays of a LineString or MultiLineString."""
    if geometry.type == "LineString":
        return [geometry.coordinates]
    if geometry.type == "MultiLineString":
        return list(geometry.coordinates)
    return []


def _open_ring(ring: Sequence) -> list:
    """Drop the closing vertex of a ring if it repeats the first."""
    if len(ring) > 1 and list(ring[0][:2]) == list(ring[-1][:2]):
        return list(ring[:-1])
    return list(ring)


def iter_positions(geometry: Geometry) -> Iterator[tuple[float, float]]:
    """Yield every (lon, lat) position of a geometry, closing vertices included."""
    coords = geometry.coordinates
    if geometry.type == "Point":
        yield (coords[0], coords[1])
    elif geometry.type in ("MultiPoint", "LineString"):
        for pos in coords:
            yield (pos[0], pos[1])
    elif geometry.type in ("MultiLineString", "Polygon"):
        for part in coords:
            for pos in part:
                yield (pos[0], pos[1])
    elif geometry.type == "MultiPolygon":
        for polygon in coords:
            for ring in polygon:
                for pos in ring:
                    yield (pos[0], pos[1])


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def validate_geometry(geometry: Geometry) -> None:
    """Check that a geometry can be measured and clipped.

    Raises:
        DegenerateGeometryError: On unsupported types, non-finite
            coordinates, polygons with fewer than 3 distinct ring points,
            or lines with zero length.
    """
    if geometry.type not in GEOMETRY_TYPES:
        raise DegenerateGeometryError(f"Unsupported geometry type: {geometry.type!r}")

    try:
        positions = list(iter_positions(geometry))
    except (TypeError, IndexError, KeyError) as e:
        raise DegenerateGeometryError(f"Malformed {geometry.type} coordinates: {e}") from e

    if not positions:
        raise DegenerateGeometryError(f"Empty {geometry.type}")

    for lon, lat in positions:
        if not (math.isfinite(lon) and math.isfinite(lat)):
            raise DegenerateGeometryError(f"Non-finite coordinate in {geometry.type}")

    for polygon in _polygons_of(geometry):
        if not polygon:
            raise DegenerateGeometryError("Polygon without rings")
        for ring in polygon:
            if _is_degenerate_ring(ring):
                raise DegenerateGeometryError("Polygon ring has fewer than 3 distinct points")

    for line in _lines_of(geometry):
        if len(line) < 2 or _path_length(line) == 0.0:
            raise DegenerateGeometryError("Zero-length line")


# ---------------------------------------------------------------------------
# Containment
# ---------------------------------------------------------------------------

def _on_segment(px: float, py: float, ax: float, ay: float, bx: float, by: float) -> bool:
    cross = (bx - ax) * (py - ay) - (by - ay) * (px - ax)
    scale = max(1.0, abs(bx - ax) + abs(by - ay))
    if abs(cross) > _BOUNDARY_EPS * scale:
        return False
    return (
        min(ax, bx) - _BOUNDARY_EPS <= px <= max(ax, bx) + _BOUNDARY_EPS
        and min(ay, by) - _BOUNDARY_EPS <= py <= max(ay, by) + _BOUNDARY_EPS
    )


def _on_ring_boundary(px: float, py: float, ring: Sequence) -> bool:
    n = len(ring)
    for i in range(n):
        ax, ay = ring[i][0], ring[i][1]
        bx, by = ring[(i + 1) % n][0], ring[(i + 1) % n][1]
        if _on_segment(px, py, ax, ay, bx, by):
            return True
    return False


def _ray_cast(px: float, py: float, ring: Sequence) -> bool:
    """Casts a ray to +infinity and counts edge crossings. Odd = inside."""
    n = len(ring)
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i][0], ring[i][1]
        xj, yj = ring[j][0], ring[j][1]
        if ((yi > py) != (yj > py)) and (
            px < (xj - xi) * (py - yi) / (yj - yi) + xi
        ):
            inside = not inside
        j = i
    return inside


def _is_degenerate_ring(ring: Sequence) -> bool:
    """Fewer than 3 distinct points: the ring encloses nothing."""
    return len({(pos[0], pos[1]) for pos in ring}) < 3


def _point_in_polygon_rings(px: float, py: float, rings: Sequence) -> bool:
    if not rings or _is_degenerate_ring(rings[0]):
        return False
    outer = rings[0]
    if _on_ring_boundary(px, py, outer):
        return True
    if not _ray_cast(px, py, outer):
        return False
    for hole in rings[1:]:
        if _is_degenerate_ring(hole):
            continue
        if _on_ring_boundary(px, py, hole):
            return True
        if _ray_cast(px, py, hole):
            return False
    return True


def point_in_polygon(point: Sequence[float], polygon: Geometry) -> bool:
    """Test whether a [lon, lat] point lies in a Polygon or MultiPolygon.

    Holes are subtracted; points on any ring boundary count as inside.
    Degenerate polygons (outer rings with fewer than 3 distinct points)
    contain nothing, not even their own vertices.
    """
    px, py = point[0], point[1]
    for rings in _polygons_of(polygon):
        if _point_in_polygon_rings(px, py, rings):
            return True
    return False


# ---------------------------------------------------------------------------
# Measurement
# ---------------------------------------------------------------------------

def ring_area(ring: Sequence) -> float:
    """Area of a single ring in m² (absolute value, orientation-free)."""
    n = len(ring)
    if n < 3:
        return 0.0
    total = 0.0
    for i in range(n):
        lon1, lat1 = ring[i][0], ring[i][1]
        lon2, lat2 = ring[(i + 1) % n][0], ring[(i + 1) % n][1]
        total += math.radians(lon2 - lon1) * (
            2 + math.sin(math.radians(lat1)) + math.sin(math.radians(lat2))
        )
    return abs(total * EARTH_RADIUS_M * EARTH_RADIUS_M / 2.0)


def polygon_area(geometry: Geometry) -> float:
    """Area in m² of a Polygon or MultiPolygon; holes subtract.

    Non-polygonal geometries have zero area.
    """
    total = 0.0
    for rings in _polygons_of(geometry):
        if not rings:
            continue
        area = ring_area(rings[0])
        for hole in rings[1:]:
            area -= ring_area(hole)
        total += max(area, 0.0) if not math.isnan(area) else area
    return total


def haversine_distance(a: Sequence[float], b: Sequence[float]) -> float:
    """Great-circle distance in meters between two [lon, lat] points."""
    lon1, lat1 = math.radians(a[0]), math.radians(a[1])
    lon2, lat2 = math.radians(b[0]), math.radians(b[1])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    if math.isnan(h):
        return math.nan
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def _path_length(path: Sequence) -> float:
    return sum(haversine_distance(path[i], path[i + 1]) for i in range(len(path) - 1))


def line_length(geometry: Geometry) -> float:
    """Length in meters of a LineString or MultiLineString.

    Non-linear geometries have zero length.
    """
    return sum(_path_length(line) for line in _lines_of(geometry))


def centroid(geometry: Geometry) -> tuple[float, float]:
    """Arithmetic mean of the vertices of a geometry (not area-weighted).

    Polygons use only their outer rings, without the closing vertex.
    Intended for labels and hover positions, not for statistics.

    Raises:
        DegenerateGeometryError: If the geometry has no vertices.
    """
    if geometry.type in ("Polygon", "MultiPolygon"):
        positions = [
            pos for rings in _polygons_of(geometry) if rings for pos in _open_ring(rings[0])
        ]
    else:
        positions = list(iter_positions(geometry))
    if not positions:
        raise DegenerateGeometryError(f"Cannot take centroid of empty {geometry.type}")
    lon = sum(p[0] for p in positions) / len(positions)
    lat = sum(p[1] for p in positions) / len(positions)
    return (lon, lat)


def bounds_of(geometry: Geometry) -> Bounds:
    """Bounding box of all vertices.

    Raises:
        DegenerateGeometryError: If the geometry has no vertices.
    """
    positions = list(iter_positions(geometry))
    if not positions:
        raise DegenerateGeometryError(f"Cannot take bounds of empty {geometry.type}")
    lons = [p[0] for p in positions]
    lats = [p[1] for p in positions]
    return Bounds(min_lon=min(lons), max_lon=max(lons), min_lat=min(lats), max_lat=max(lats))
