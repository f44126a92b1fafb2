"""SelectionPolygon and ComparisonArea models."""

from __future__ import annotations

from dataclasses import dataclass, field

from areascope.geometry.kernel import centroid, polygon_area
from areascope.geometry.model import Geometry
from areascope.layers.repository import LayerDataRepository

RGBA = tuple[int, int, int, int]

# Colorblind-friendly, distinct; cycled by creation index
AREA_COLORS: tuple[RGBA, ...] = (
    (59, 130, 246, 200),   # Blue
    (249, 115, 22, 200),   # Orange
    (34, 197, 94, 200),    # Green
    (168, 85, 247, 200),   # Purple
    (236, 72, 153, 200),   # Pink
    (20, 184, 166, 200),   # Teal
    (234, 179, 8, 200),    # Yellow
    (100, 116, 139, 200),  # Slate
)

AREA_NAMES: tuple[str, ...] = tuple(f"Area {letter}" for letter in "ABCDEFGH")

DEFAULT_MAX_AREAS = 8


@dataclass(frozen=True)
class SelectionPolygon:
    """A selection boundary with its precomputed area.

    Attributes:
        geometry: Polygon or MultiPolygon.
        area_m2: Area from polygon_area(), in m².
        version: Bumped each time the area's polygon is replaced; used to
            invalidate cached statistics.
    """

    geometry: Geometry
    area_m2: float
    version: int = 0

    @classmethod
    def from_geometry(cls, geometry: Geometry, version: int = 0) -> "SelectionPolygon":
        """Build a selection, measuring its area.

        Raises:
            ValueError: If the geometry is not a Polygon or MultiPolygon.
        """
        if geometry.type not in ("Polygon", "MultiPolygon"):
            raise ValueError(f"Selection must be a Polygon or MultiPolygon, got {geometry.type}")
        return cls(geometry=geometry, area_m2=polygon_area(geometry), version=version)

    @property
    def area_km2(self) -> float:
        return self.area_m2 / 1_000_000.0

    def to_dict(self) -> dict:
        return {
            "geometry": self.geometry.to_geojson(),
            "area_m2": self.area_m2,
            "version": self.version,
        }


@dataclass(frozen=True)
class ComparisonArea:
    """A saved, named selection with its own per-layer data.

    Attributes:
        area_id: Stable identifier.
        name: Display name (not required to be unique).
        color: RGBA display color.
        polygon: Selection polygon and its area.
        layer_data: Per-layer data for the layers active at computation
            time. A missing layer means "not computed", not zero.
        created_index: Creation sequence number, used for default ordering.
    """

    area_id: str
    name: str
    color: RGBA
    polygon: SelectionPolygon
    layer_data: LayerDataRepository = field(default_factory=LayerDataRepository)
    created_index: int = 0

    @property
    def label_position(self) -> tuple[float, float]:
        return centroid(self.polygon.geometry)

    def to_dict(self, include_layers: bool = False) -> dict:
        result = {
            "id": self.area_id,
            "name": self.name,
            "color": list(self.color),
            "polygon": self.polygon.to_dict(),
            "area_km2": self.polygon.area_km2,
            "label_position": list(self.label_position),
        }
        if include_layers:
            result["layers"] = {
                layer_id: data.to_dict() for layer_id, data in self.layer_data.items()
            }
        return result
