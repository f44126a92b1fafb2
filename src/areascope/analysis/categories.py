"""Category aggregator — POI categories, counts, densities and diversity.

Categories group layers semantically (food, shopping, transit, ...).
Counts prefer clipped features over raw features, since clipped data is
authoritative once a selection exists. Every category is always reported,
with count 0 when none of its layers has data.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Sequence

from areascope.layers.layer import LayerData
from areascope.layers.repository import LayerDataRepository


@dataclass(frozen=True)
class Category:
    """A semantic grouping of layers.

    Attributes:
        category_id: Stable key.
        name: Display name.
        layer_ids: Member layers.
        color: RGB display color.
        expected_min: Minimum feature count expected in a typical
            neighborhood-scale selection (used by quality scoring).
    """

    category_id: str
    name: str
    layer_ids: tuple[str, ...]
    color: tuple[int, int, int] = (128, 128, 128)
    expected_min: int = 0


POI_CATEGORIES: tuple[Category, ...] = (
    Category("food", "Food & Dining", ("poi-food-drink",), (255, 87, 51)),
    Category("shopping", "Retail & Shopping", ("poi-shopping",), (255, 195, 0)),
    Category("grocery", "Grocery & Convenience", ("poi-grocery",), (76, 175, 80)),
    Category("health", "Healthcare", ("poi-health",), (244, 67, 54)),
    Category("education", "Education", ("poi-education",), (103, 58, 183)),
    Category("bike", "Cycling Infrastructure",
             ("poi-bike-parking", "poi-bike-shops", "bike-lanes"), (0, 188, 212)),
    Category("transit", "Public Transit", ("transit-stops", "rail-lines"), (0, 128, 255)),
    Category("green", "Green Space", ("parks", "trees"), (34, 139, 34)),
)

# Categories tracked by data-quality scoring, with expected minimum counts
QUALITY_CATEGORIES: tuple[Category, ...] = (
    Category("poi-food-drink", "Food & Drink", ("poi-food-drink",), expected_min=5),
    Category("poi-shopping", "Shopping", ("poi-shopping",), expected_min=3),
    Category("poi-grocery", "Grocery", ("poi-grocery",), expected_min=2),
    Category("poi-health", "Healthcare", ("poi-health",), expected_min=1),
    Category("poi-education", "Education", ("poi-education",), expected_min=1),
    Category(
        "buildings",
        "Buildings",
        ("buildings-residential", "buildings-commercial", "buildings-industrial", "buildings-other"),
        expected_min=10,
    ),
    Category("parks", "Parks", ("parks",), expected_min=1),
)


@dataclass(frozen=True)
class CategoryMetric:
    """Aggregated count and density for one category in one area."""

    category_id: str
    name: str
    count: int
    density: float
    share: float
    color: tuple[int, int, int]

    def to_dict(self) -> dict:
        return {
            "id": self.category_id,
            "name": self.name,
            "count": self.count,
            "density": self.density,
            "share": self.share,
            "color": list(self.color),
        }


@dataclass(frozen=True)
class POIMetrics:
    """Area-level POI summary built from category metrics."""

    total_count: int
    density: float
    diversity_index: float
    diversity_label: str
    category_breakdown: tuple[CategoryMetric, ...]
    coverage_score: float
    coverage_label: str
    area_km2: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "total_count": self.total_count,
            "density": self.density,
            "diversity_index": self.diversity_index,
            "diversity_label": self.diversity_label,
            "category_breakdown": [c.to_dict() for c in self.category_breakdown],
            "coverage_score": self.coverage_score,
            "coverage_label": self.coverage_label,
            "area_km2": self.area_km2,
            "timestamp": self.timestamp,
        }


def _as_repository(layer_data: Mapping[str, LayerData]) -> LayerDataRepository:
    if isinstance(layer_data, LayerDataRepository):
        return layer_data
    return LayerDataRepository(layer_data.values())


def category_count(layer_data: Mapping[str, LayerData], category: Category) -> int:
    """Sum of feature counts over a category's member layers."""
    repo = _as_repository(layer_data)
    return sum(repo.feature_count(layer_id) for layer_id in category.layer_ids)


def aggregate(
    layer_data: Mapping[str, LayerData],
    area_km2: float,
    categories: Sequence[Category] = POI_CATEGORIES,
) -> list[CategoryMetric]:
    """Per-category counts, densities (per km²) and shares of the total.

    Every category appears in the output, with count 0 when it has no data.
    """
    repo = _as_repository(layer_data)
    counts = [(category, category_count(repo, category)) for category in categories]
    total = sum(count for _, count in counts)

    return [
        CategoryMetric(
            category_id=category.category_id,
            name=category.name,
            count=count,
            density=count / area_km2 if area_km2 > 0 else 0.0,
            share=(count / total) * 100.0 if total > 0 else 0.0,
            color=category.color,
        )
        for category, count in counts
    ]


def shannon_index(counts: Sequence[float]) -> float:
    """Shannon diversity H = -Σ pᵢ ln pᵢ over the non-zero counts.

    0 for a single category or no data.
    """
    total = sum(counts)
    if total <= 0:
        return 0.0
    entropy = 0.0
    for count in counts:
        if count > 0:
            p = count / total
            entropy -= p * math.log(p)
    return entropy


def interpret_diversity_index(index: float) -> str:
    if index == 0:
        return "None"
    if index < 0.5:
        return "Very Low"
    if index < 1.0:
        return "Low"
    if index < 1.5:
        return "Moderate"
    if index < 2.0:
        return "High"
    return "Very High"


def coverage_score(breakdown: Sequence[CategoryMetric]) -> float:
    """Percentage of categories with any data."""
    if not breakdown:
        return 0.0
    present = sum(1 for c in breakdown if c.count > 0)
    return present / len(breakdown) * 100.0


def interpret_coverage_score(score: float) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 50:
        return "Partial"
    return "Limited"


def poi_metrics(layer_data: Mapping[str, LayerData], area_km2: float) -> POIMetrics:
    """Full POI summary for an area: totals, diversity and coverage."""
    breakdown = aggregate(layer_data, area_km2)
    total = sum(c.count for c in breakdown)
    diversity = shannon_index([c.count for c in breakdown])
    coverage = coverage_score(breakdown)
    return POIMetrics(
        total_count=total,
        density=total / area_km2 if area_km2 > 0 else 0.0,
        diversity_index=diversity,
        diversity_label=interpret_diversity_index(diversity),
        category_breakdown=tuple(breakdown),
        coverage_score=coverage,
        coverage_label=interpret_coverage_score(coverage),
        area_km2=area_km2,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )


def calculate_delta(value_a: float, value_b: float) -> float:
    """Percentage change of a relative to b; 100 when b is 0 and a positive."""
    if value_b == 0:
        return 100.0 if value_a > 0 else 0.0
    return (value_a - value_b) / value_b * 100.0


def delta_indicator(delta: float) -> str:
    if delta > 50:
        return "▲▲"
    if delta > 10:
        return "▲"
    if delta < -50:
        return "▼▼"
    if delta < -10:
        return "▼"
    return ""


@dataclass(frozen=True)
class MetricComparison:
    """One POI metric side by side for two areas, with the delta of a vs b."""

    metric_id: str
    metric_name: str
    values: tuple[float, float]
    delta: float
    delta_indicator: str
    unit: str

    def to_dict(self) -> dict:
        return {
            "metric_id": self.metric_id,
            "metric_name": self.metric_name,
            "values": list(self.values),
            "delta": self.delta,
            "delta_indicator": self.delta_indicator,
            "unit": self.unit,
        }


def compare_area_metrics(metrics_a: POIMetrics, metrics_b: POIMetrics) -> list[MetricComparison]:
    """Total count, density and diversity of area a relative to area b."""
    rows = (
        ("total_count", "Total POIs", metrics_a.total_count, metrics_b.total_count, "count"),
        ("density", "POI Density", metrics_a.density, metrics_b.density, "per km²"),
        ("diversity_index", "Diversity Index", metrics_a.diversity_index,
         metrics_b.diversity_index, "index"),
    )
    comparisons = []
    for metric_id, name, value_a, value_b, unit in rows:
        delta = calculate_delta(value_a, value_b)
        comparisons.append(MetricComparison(
            metric_id=metric_id,
            metric_name=name,
            values=(value_a, value_b),
            delta=delta,
            delta_indicator=delta_indicator(delta),
            unit=unit,
        ))
    return comparisons
