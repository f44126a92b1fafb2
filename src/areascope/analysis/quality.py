"""Data quality scorer — completeness of fetched data per category.

For each tracked category the feature count is averaged across the target
areas and scored against the category's expected minimum:

    category_score = min(100, 100 * avg_count / expected_min)

The overall score is the mean of category scores over categories that
have any data at all (absent categories don't drag the mean toward 0),
and 0 when no category has data. Scores are clamped per category before
averaging.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from areascope.analysis.categories import QUALITY_CATEGORIES, Category, category_count
from areascope.areas.models import ComparisonArea


@dataclass(frozen=True)
class CategoryScore:
    category: str
    name: str
    score: float
    count: float
    expected_min: int

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "name": self.name,
            "score": self.score,
            "count": self.count,
            "expected_min": self.expected_min,
        }


@dataclass(frozen=True)
class QualityWarning:
    type: str
    message: str
    severity: str

    def to_dict(self) -> dict:
        return {"type": self.type, "message": self.message, "severity": self.severity}


@dataclass(frozen=True)
class DataQuality:
    """Quality summary for one area or a set of areas."""

    overall_score: float
    category_scores: tuple[CategoryScore, ...]
    warnings: tuple[QualityWarning, ...]
    last_updated: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def label(self) -> str:
        return score_label(self.overall_score)

    def to_dict(self) -> dict:
        return {
            "overall_score": self.overall_score,
            "label": self.label,
            "category_scores": [c.to_dict() for c in self.category_scores],
            "warnings": [w.to_dict() for w in self.warnings],
            "last_updated": self.last_updated.isoformat(),
        }


def score_label(score: float) -> str:
    if score >= 90:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 50:
        return "Partial"
    return "Limited"


def category_score(avg_count: float, expected_min: int) -> float:
    """Score one category; clamped to 100, 0 when nothing is expected."""
    if expected_min <= 0:
        return 0.0
    return min(100.0, max(0.0, 100.0 * avg_count / expected_min))


def score(
    areas: ComparisonArea | Sequence[ComparisonArea],
    active_layers: Iterable[str],
    categories: Sequence[Category] = QUALITY_CATEGORIES,
) -> Optional[DataQuality]:
    """Score data completeness for one area or averaged across several.

    Args:
        areas: A single area or the set of areas to average over.
        active_layers: Ids of the currently active layers. Warnings are
            only raised for categories with at least one active layer.
        categories: Tracked categories with expected minimums.

    Returns:
        DataQuality, or None when there are no areas to score.
    """
    targets = [areas] if isinstance(areas, ComparisonArea) else list(areas)
    if not targets:
        return None

    active = set(active_layers)
    scores: list[CategoryScore] = []
    warnings: list[QualityWarning] = []
    scored_with_data: list[float] = []

    for category in categories:
        total = sum(category_count(area.layer_data, category) for area in targets)
        avg = total / len(targets)
        value = category_score(avg, category.expected_min)
        scores.append(
            CategoryScore(
                category=category.category_id,
                name=category.name,
                score=value,
                count=avg,
                expected_min=category.expected_min,
            )
        )
        if avg > 0:
            scored_with_data.append(value)

        if not active.intersection(category.layer_ids):
            continue
        if avg == 0:
            warnings.append(
                QualityWarning(
                    type="missing_category",
                    message=f"{category.name} data not found - may be a data gap",
                    severity="warning",
                )
            )
        elif avg < category.expected_min * 0.5:
            warnings.append(
                QualityWarning(
                    type="low_count",
                    message=f"{category.name} count is lower than typical",
                    severity="info",
                )
            )

    overall = sum(scored_with_data) / len(scored_with_data) if scored_with_data else 0.0
    return DataQuality(
        overall_score=overall,
        category_scores=tuple(scores),
        warnings=tuple(warnings),
    )
