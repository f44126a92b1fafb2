"""Feature, LayerConfig and LayerData dataclasses for the layer system.

All coordinates are stored in GeoJSON convention: [lon, lat].
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from areascope.geometry.model import Geometry

PropertyValue = Union[str, int, float, bool, None]

LAYER_GROUPS = (
    "usage",
    "infrastructure",
    "access",
    "traffic",
    "amenities",
    "environment",
    "custom",
)

GEOMETRY_KINDS = ("point", "line", "polygon")

STATS_RECIPES = ("count", "length", "area", "density", "area_share")

# Property keys tried, in order, when picking a human-readable label
LABEL_KEYS = (
    "name",
    "name:en",
    "brand",
    "operator",
    "ref",
    "amenity",
    "shop",
    "leisure",
    "building",
    "highway",
    "railway",
)


@dataclass(frozen=True)
class Feature:
    """A single immutable feature (point, line, polygon) within a layer.

    Attributes:
        geometry: The feature geometry.
        properties: Tag/attribute values (string, number, boolean or null).
        feature_id: Optional source identifier.
    """

    geometry: Geometry
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    feature_id: Optional[str] = None

    def with_geometry(self, geometry: Geometry) -> "Feature":
        """Return a copy of this feature carrying a different geometry."""
        return Feature(geometry=geometry, properties=self.properties, feature_id=self.feature_id)

    @property
    def label(self) -> str | None:
        return display_label(self.properties)


@dataclass(frozen=True)
class FeatureCollection:
    """An ordered, immutable sequence of features."""

    features: tuple[Feature, ...] = ()

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[Feature]:
        return iter(self.features)

    def __bool__(self) -> bool:
        return bool(self.features)

    @classmethod
    def of(cls, features) -> "FeatureCollection":
        return cls(features=tuple(features))


EMPTY_COLLECTION = FeatureCollection()


def display_label(properties: dict[str, PropertyValue]) -> str | None:
    """Pick the best human-readable label from a feature's properties.

    Tries LABEL_KEYS in order and returns the first non-empty value as a
    string. Booleans are skipped ("yes"/"no" tags make poor labels).
    """
    for key in LABEL_KEYS:
        value = properties.get(key)
        if value is None or isinstance(value, bool):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


@dataclass(frozen=True)
class LayerConfig:
    """Static description of a layer.

    Attributes:
        layer_id: Unique key.
        name: Human-readable display name.
        group: One of LAYER_GROUPS.
        geometry_type: "point", "line" or "polygon".
        stats_recipes: Measures computed for this layer (subset of STATS_RECIPES).
        priority: Draw order within the group (higher = on top).
        description: Optional one-line description.
        is_custom: True for user-uploaded layers.
        source_type: "geojson" or "csv" for custom layers.
        file_name: Uploaded file name for custom layers.
    """

    layer_id: str
    name: str
    group: str
    geometry_type: str
    stats_recipes: frozenset[str]
    priority: int = 0
    description: str = ""
    is_custom: bool = False
    source_type: Optional[str] = None
    file_name: Optional[str] = None

    def has_recipe(self, recipe: str) -> bool:
        return recipe in self.stats_recipes

    def to_dict(self) -> dict:
        return {
            "id": self.layer_id,
            "name": self.name,
            "group": self.group,
            "geometry_type": self.geometry_type,
            "stats_recipes": sorted(self.stats_recipes),
            "priority": self.priority,
            "description": self.description,
            "is_custom": self.is_custom,
            "source_type": self.source_type,
            "file_name": self.file_name,
        }


@dataclass(frozen=True)
class LayerStats:
    """Per-layer statistics. A field is None when the layer doesn't declare it.

    Attributes:
        count: Number of clipped features.
        density: Features per km² of selection.
        total_length: Summed line length in meters.
        total_area: Summed polygon area in m².
        area_share: Percentage of the selection covered (stored unclamped).
    """

    count: Optional[int] = None
    density: Optional[float] = None
    total_length: Optional[float] = None
    total_area: Optional[float] = None
    area_share: Optional[float] = None

    def to_dict(self) -> dict:
        fields = {
            "count": self.count,
            "density": self.density,
            "total_length": self.total_length,
            "total_area": self.total_area,
            "area_share": self.area_share,
        }
        return {k: v for k, v in fields.items() if v is not None}


STAT_FIELDS = ("count", "density", "total_length", "total_area", "area_share")


@dataclass(frozen=True)
class LayerData:
    """Fetched and derived data for one layer within one area.

    Attributes:
        layer_id: The layer this data belongs to.
        features: Full fetched collection.
        clipped_features: Collection restricted to the selection, once one exists.
        stats: Computed statistics, once computed.
        dropped_count: Features excluded as degenerate during clipping.
    """

    layer_id: str
    features: FeatureCollection = EMPTY_COLLECTION
    clipped_features: Optional[FeatureCollection] = None
    stats: Optional[LayerStats] = None
    dropped_count: int = 0

    def to_dict(self) -> dict:
        return {
            "layer_id": self.layer_id,
            "feature_count": len(self.features),
            "clipped_count": (
                len(self.clipped_features) if self.clipped_features is not None else None
            ),
            "stats": self.stats.to_dict() if self.stats is not None else None,
            "dropped_count": self.dropped_count,
        }
