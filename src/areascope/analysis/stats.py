"""Layer statistics engine.

Computes a LayerStats for one layer from its clipped features and the
selection area. Only the measures the layer's recipe and geometry type
declare are filled in:

    count        recipe has "count"
    density      recipe has "density"              count per km²
    total_length recipe has "length", line layer    meters
    total_area   recipe has "area"/"area_share",   m²
                 polygon layer
    area_share   recipe has "area_share",          percent of selection,
                 polygon layer                      stored unclamped

A zero-area selection yields 0 for density and area_share, never NaN.
"""

from __future__ import annotations

from loguru import logger

from areascope.errors import EmptySelectionError
from areascope.geometry.kernel import line_length, polygon_area
from areascope.layers.layer import FeatureCollection, LayerConfig, LayerStats

M2_PER_KM2 = 1_000_000.0

# Slack before an area share above 100% is reported as a clip inconsistency
_AREA_SHARE_TOLERANCE = 1e-6


def selection_area_km2(selection_area_m2: float) -> float:
    """Convert a selection area to km².

    Raises:
        EmptySelectionError: If the area is zero, negative or NaN.
    """
    if not selection_area_m2 > 0:
        raise EmptySelectionError(f"Selection area is {selection_area_m2} m²")
    return selection_area_m2 / M2_PER_KM2


def _safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def total_length(features: FeatureCollection) -> float:
    """Summed length of the line features in a collection, in meters."""
    return sum(line_length(f.geometry) for f in features if f.geometry.family == "line")


def total_area(features: FeatureCollection) -> float:
    """Summed area of the polygon features in a collection, in m²."""
    return sum(polygon_area(f.geometry) for f in features if f.geometry.family == "polygon")


def compute_stats(
    layer: LayerConfig,
    clipped_features: FeatureCollection,
    selection_area_m2: float,
) -> LayerStats:
    """Compute statistics for one layer within a selection.

    Args:
        layer: Layer configuration (recipe and geometry type).
        clipped_features: Features already clipped to the selection.
        selection_area_m2: Selection polygon area in m².

    Returns:
        LayerStats with only the declared fields set.
    """
    try:
        area_km2 = selection_area_km2(selection_area_m2)
    except EmptySelectionError:
        area_km2 = 0.0

    count = len(clipped_features)
    fields: dict = {}

    if layer.has_recipe("count"):
        fields["count"] = count

    if layer.has_recipe("density"):
        fields["density"] = _safe_ratio(count, area_km2)

    if layer.has_recipe("length") and layer.geometry_type == "line":
        fields["total_length"] = total_length(clipped_features)

    if layer.geometry_type == "polygon" and (
        layer.has_recipe("area") or layer.has_recipe("area_share")
    ):
        area = total_area(clipped_features)
        fields["total_area"] = area

        if layer.has_recipe("area_share"):
            share = 100.0 * _safe_ratio(area, selection_area_m2)
            if share > 100.0 + _AREA_SHARE_TOLERANCE:
                logger.warning(
                    f"Layer {layer.layer_id}: area share {share:.2f}% exceeds 100% "
                    f"across {count} features (clip inconsistency)"
                )
            fields["area_share"] = share

    return LayerStats(**fields)


def display_area_share(stats: LayerStats) -> float | None:
    """Area share clamped to [0, 100] for display; None when not computed."""
    if stats.area_share is None:
        return None
    return min(100.0, max(0.0, stats.area_share))
