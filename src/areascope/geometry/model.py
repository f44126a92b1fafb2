"""Geometry value types.

All coordinates follow the GeoJSON convention: [lon, lat] in WGS84 degrees.
    Point:            [lon, lat]
    MultiPoint:       [[lon, lat], ...]
    LineString:       [[lon, lat], [lon, lat], ...]
    MultiLineString:  [LineString coordinates, ...]
    Polygon:          [outer ring, hole ring, ...]  (rings closed, first == last)
    MultiPolygon:     [Polygon coordinates, ...]
"""

from __future__ import annotations

from dataclasses import dataclass

GEOMETRY_TYPES = (
    "Point",
    "MultiPoint",
    "LineString",
    "MultiLineString",
    "Polygon",
    "MultiPolygon",
)

# GeoJSON type -> layer geometry family used by stats recipes
GEOMETRY_FAMILY = {
    "Point": "point",
    "MultiPoint": "point",
    "LineString": "line",
    "MultiLineString": "line",
    "Polygon": "polygon",
    "MultiPolygon": "polygon",
}


@dataclass(frozen=True)
class Geometry:
    """An immutable GeoJSON-style geometry.

    Attributes:
        type: One of GEOMETRY_TYPES.
        coordinates: Nested coordinate lists in [lon, lat] order.
    """

    type: str
    coordinates: list

    @property
    def family(self) -> str | None:
        """Return "point", "line" or "polygon", or None for unknown types."""
        return GEOMETRY_FAMILY.get(self.type)

    def to_geojson(self) -> dict:
        return {"type": self.type, "coordinates": self.coordinates}

    @classmethod
    def from_geojson(cls, data: dict) -> "Geometry":
        """Build a Geometry from a GeoJSON geometry dict.

        Raises:
            ValueError: If the dict has no type or coordinates.
        """
        if not isinstance(data, dict):
            raise ValueError("Geometry must be a JSON object")
        geom_type = data.get("type")
        coordinates = data.get("coordinates")
        if not isinstance(geom_type, str) or coordinates is None:
            raise ValueError("Geometry requires 'type' and 'coordinates'")
        return cls(type=geom_type, coordinates=coordinates)


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned bounding box in degrees."""

    min_lon: float
    max_lon: float
    min_lat: float
    max_lat: float

    def to_dict(self) -> dict:
        return {
            "min_lon": self.min_lon,
            "max_lon": self.max_lon,
            "min_lat": self.min_lat,
            "max_lat": self.max_lat,
        }
