"""Static layer manifest — groups and layer definitions.

Layers are defined once at import time and never mutated. Custom
(user-uploaded) layers share the LayerConfig shape and are created at
runtime by create_custom_layer().
"""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

from areascope.layers.layer import LAYER_GROUPS, FeatureCollection, LayerConfig


@dataclass(frozen=True)
class LayerGroup:
    """A semantic layer group (stacking order and display name)."""

    group_id: str
    name: str
    priority: int
    color: tuple[int, int, int]


GROUPS: tuple[LayerGroup, ...] = (
    LayerGroup("environment", "Environment", 1, (46, 139, 87)),
    LayerGroup("usage", "Land Use", 2, (102, 51, 153)),
    LayerGroup("infrastructure", "Infrastructure", 3, (51, 102, 204)),
    LayerGroup("access", "Access & Transit", 4, (34, 139, 34)),
    LayerGroup("traffic", "Traffic Control", 5, (220, 20, 60)),
    LayerGroup("amenities", "Amenities", 6, (255, 152, 0)),
    LayerGroup("custom", "Custom Data", 7, (200, 200, 200)),
)

# Default recipes for uploaded layers, by geometry family
STATS_BY_GEOMETRY: dict[str, frozenset[str]] = {
    "point": frozenset({"count", "density"}),
    "line": frozenset({"count", "length", "density"}),
    "polygon": frozenset({"count", "area", "density", "area_share"}),
}


def _layer(layer_id, name, group, geometry_type, priority, recipes, description) -> LayerConfig:
    return LayerConfig(
        layer_id=layer_id,
        name=name,
        group=group,
        geometry_type=geometry_type,
        stats_recipes=frozenset(recipes),
        priority=priority,
        description=description,
    )


LAYERS: tuple[LayerConfig, ...] = (
    # Land use (buildings by type)
    _layer("buildings-residential", "Residential Buildings", "usage", "polygon", 13,
           ("count", "area", "density"), "Residential buildings (houses, apartments)"),
    _layer("buildings-commercial", "Commercial Buildings", "usage", "polygon", 14,
           ("count", "area", "density"), "Commercial buildings (offices, retail, hotels)"),
    _layer("buildings-industrial", "Industrial Buildings", "usage", "polygon", 15,
           ("count", "area", "density"), "Industrial buildings (warehouses, factories)"),
    _layer("buildings-other", "Other Buildings", "usage", "polygon", 16,
           ("count", "area", "density"), "Other buildings (civic, religious, etc.)"),
    # Infrastructure
    _layer("roads-primary", "Primary Roads", "infrastructure", "line", 20,
           ("length", "count"), "Major roads and highways"),
    _layer("roads-residential", "Residential Streets", "infrastructure", "line", 21,
           ("length", "count"), "Residential and local streets"),
    _layer("bike-lanes", "Bike Lanes", "infrastructure", "line", 25,
           ("length", "density"), "Dedicated bicycle infrastructure"),
    _layer("crosswalks", "Crosswalks", "infrastructure", "point", 26,
           ("count", "density"), "Pedestrian crossings"),
    # Access & transit
    _layer("transit-stops", "Transit Stops", "access", "point", 30,
           ("count", "density"), "Public transit stops"),
    _layer("rail-lines", "Rail Lines", "access", "line", 31,
           ("length",), "Rail and subway lines"),
    _layer("parking", "Parking", "access", "polygon", 32,
           ("count", "area"), "Parking lots and structures"),
    # Traffic control
    _layer("traffic-signals", "Traffic Signals", "traffic", "point", 40,
           ("count", "density"), "Traffic signal locations"),
    # Environment
    _layer("parks", "Parks", "environment", "polygon", 50,
           ("area", "area_share", "count"), "Parks and green spaces"),
    _layer("water", "Water Bodies", "environment", "polygon", 51,
           ("area", "area_share"), "Lakes, rivers, and water bodies"),
    _layer("trees", "Trees", "environment", "point", 52,
           ("count", "density"), "Individual trees"),
    # Amenities / POIs
    _layer("poi-food-drink", "Food & Drink", "amenities", "point", 60,
           ("count", "density"), "Restaurants, cafes, bars, and fast food"),
    _layer("poi-shopping", "Shopping", "amenities", "point", 61,
           ("count", "density"), "All types of shops and retail"),
    _layer("poi-grocery", "Grocery", "amenities", "point", 62,
           ("count", "density"), "Supermarkets, grocery stores, convenience stores"),
    _layer("poi-health", "Healthcare", "amenities", "point", 63,
           ("count", "density"), "Hospitals, clinics, pharmacies"),
    _layer("poi-education", "Education", "amenities", "point", 64,
           ("count", "density"), "Schools, universities, colleges"),
    _layer("poi-bike-parking", "Bike Parking", "amenities", "point", 65,
           ("count", "density"), "Bicycle parking locations"),
    _layer("poi-bike-shops", "Bike Services", "amenities", "point", 66,
           ("count", "density"), "Bike shops and rental services"),
)

_LAYERS_BY_ID = {layer.layer_id: layer for layer in LAYERS}
_GROUPS_BY_ID = {group.group_id: group for group in GROUPS}


def get_layer(layer_id: str) -> Optional[LayerConfig]:
    """Return a manifest layer by id, or None."""
    return _LAYERS_BY_ID.get(layer_id)


def get_group(group_id: str) -> Optional[LayerGroup]:
    """Return a group by id, or None."""
    return _GROUPS_BY_ID.get(group_id)


def layers_in_group(group_id: str) -> list[LayerConfig]:
    return [layer for layer in LAYERS if layer.group == group_id]


def sorted_layers(layers: Iterable[LayerConfig] = LAYERS) -> list[LayerConfig]:
    """Sort layers by group priority, then layer priority."""
    def key(layer: LayerConfig) -> tuple[int, int]:
        group = _GROUPS_BY_ID.get(layer.group)
        return (group.priority if group else 0, layer.priority)

    return sorted(layers, key=key)


def infer_geometry_type(collection: FeatureCollection) -> str:
    """Infer a layer geometry family from the first feature with a known type.

    Raises:
        ValueError: If no feature has a point, line or polygon geometry.
    """
    for feature in collection:
        family = feature.geometry.family
        if family is not None:
            return family
    raise ValueError("No valid geometries found")


def _slug(text: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug or "layer"


def create_custom_layer(
    name: str,
    collection: FeatureCollection,
    source_type: str,
    file_name: str = "",
    group: str = "custom",
    priority: int = 100,
) -> LayerConfig:
    """Build a LayerConfig for user-uploaded data.

    The geometry family is inferred from the data and the stats recipes
    default to STATS_BY_GEOMETRY for that family.

    Raises:
        ValueError: If the group is unknown or no geometry can be inferred.
    """
    if group not in LAYER_GROUPS:
        raise ValueError(f"Unknown layer group: {group}")
    geometry_type = infer_geometry_type(collection)
    return LayerConfig(
        layer_id=f"custom-{_slug(name)}-{uuid.uuid4().hex[:6]}",
        name=name,
        group=group,
        geometry_type=geometry_type,
        stats_recipes=STATS_BY_GEOMETRY[geometry_type],
        priority=priority,
        description=f"Uploaded from {file_name}" if file_name else "",
        is_custom=True,
        source_type=source_type,
        file_name=file_name or None,
    )
