"""Plain-language observations drawn from one or two areas' POI metrics.

One area gets density and diversity remarks. Two areas get comparisons
of density, data coverage, diversity, size and dining options. Other
area counts produce nothing. At most MAX_INSIGHTS are returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from areascope.analysis.categories import POIMetrics, poi_metrics
from areascope.analysis.stats import M2_PER_KM2

if TYPE_CHECKING:
    from areascope.areas.models import ComparisonArea

MAX_INSIGHTS = 4

HIGH_DENSITY = 200.0
LOW_DENSITY = 50.0
DIVERSE_INDEX = 1.5

DENSITY_DIFF_PCT = 50.0
COVERAGE_DIFF_POINTS = 20.0
DIVERSITY_DIFF = 0.3
SIZE_DIFF_PCT = 100.0
FOOD_DIFF_PCT = 75.0


@dataclass(frozen=True)
class Insight:
    """An auto-generated observation.

    kind is "positive", "caution" or "neutral".
    """

    title: str
    description: str
    confidence: str
    related_metrics: tuple[str, ...]
    kind: str

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "confidence": self.confidence,
            "related_metrics": list(self.related_metrics),
            "type": self.kind,
        }


@dataclass(frozen=True)
class _AreaSummary:
    name: str
    area_km2: float
    metrics: POIMetrics


def _summarize(area: "ComparisonArea") -> _AreaSummary:
    area_km2 = area.polygon.area_m2 / M2_PER_KM2
    return _AreaSummary(area.name, area_km2, poi_metrics(area.layer_data, area_km2))


def _category_count(metrics: POIMetrics, category_id: str) -> int:
    for category in metrics.category_breakdown:
        if category.category_id == category_id:
            return category.count
    return 0


def _single_area(area: _AreaSummary) -> list[Insight]:
    insights = []
    density = area.metrics.density
    if density >= HIGH_DENSITY:
        insights.append(Insight(
            "High Amenity Density",
            f"{area.name} has {round(density)} POIs per km², suggesting a service-rich environment.",
            "high", ("density",), "positive",
        ))
    elif density < LOW_DENSITY:
        insights.append(Insight(
            "Low Amenity Density",
            f"{area.name} has limited amenities ({round(density)} per km²). "
            "This may indicate a more residential or rural character.",
            "high", ("density",), "caution",
        ))
    if area.metrics.diversity_index >= DIVERSE_INDEX:
        insights.append(Insight(
            "Diverse Amenity Mix",
            "Good variety of amenity types, indicating a mixed-use character.",
            "medium", ("diversity_index",), "positive",
        ))
    return insights


def _two_areas(a: _AreaSummary, b: _AreaSummary) -> list[Insight]:
    insights = []

    if b.metrics.density > 0:
        density_diff = (a.metrics.density - b.metrics.density) / b.metrics.density * 100.0
        if abs(density_diff) > DENSITY_DIFF_PCT:
            higher, lower = (a, b) if density_diff > 0 else (b, a)
            insights.append(Insight(
                "Significant Density Difference",
                f"{higher.name} has {abs(round(density_diff))}% higher POI density than "
                f"{lower.name}, suggesting a more service-rich environment.",
                "high", ("density",), "neutral",
            ))

    coverage_diff = a.metrics.coverage_score - b.metrics.coverage_score
    if abs(coverage_diff) > COVERAGE_DIFF_POINTS:
        better, worse = (a, b) if coverage_diff > 0 else (b, a)
        insights.append(Insight(
            "Data Coverage Difference",
            f"{better.name} has better data coverage than {worse.name}. "
            f"Results for {worse.name} may be less complete.",
            "medium", ("coverage",), "caution",
        ))

    diversity_diff = a.metrics.diversity_index - b.metrics.diversity_index
    if abs(diversity_diff) > DIVERSITY_DIFF:
        more, less = (a, b) if diversity_diff > 0 else (b, a)
        insights.append(Insight(
            "Amenity Diversity",
            f"{more.name} has a more diverse mix of amenity types compared to {less.name}.",
            "medium", ("diversity_index",), "neutral",
        ))

    if b.area_km2 > 0:
        size_diff = (a.area_km2 - b.area_km2) / b.area_km2 * 100.0
        if abs(size_diff) > SIZE_DIFF_PCT:
            insights.append(Insight(
                "Different Scale",
                f"The areas differ significantly in size ({abs(round(size_diff))}%). "
                "Per km² metrics provide fairer comparison.",
                "high", ("area_size",), "caution",
            ))

    food_a = _category_count(a.metrics, "food")
    food_b = _category_count(b.metrics, "food")
    if food_a > 0 and food_b > 0 and a.area_km2 > 0 and b.area_km2 > 0:
        density_a = food_a / a.area_km2
        density_b = food_b / b.area_km2
        food_diff = (density_a - density_b) / density_b * 100.0
        if abs(food_diff) > FOOD_DIFF_PCT:
            more = a if food_diff > 0 else b
            insights.append(Insight(
                "Dining Options",
                f"{more.name} has significantly more food & dining options per km².",
                "medium", ("food",), "neutral",
            ))

    return insights


def generate_insights(areas: Sequence["ComparisonArea"]) -> list[Insight]:
    """Observations for one area alone or two areas side by side."""
    summaries = [_summarize(area) for area in areas]
    if len(summaries) == 1:
        insights = _single_area(summaries[0])
    elif len(summaries) == 2:
        insights = _two_areas(*summaries)
    else:
        insights = []
    return insights[:MAX_INSIGHTS]
