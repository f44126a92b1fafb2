"""Tests for the data quality scorer."""

from __future__ import annotations

import pytest

from areascope.analysis.categories import Category
from areascope.analysis.quality import category_score, score, score_label
from areascope.areas.models import AREA_COLORS, ComparisonArea, SelectionPolygon
from areascope.layers.layer import FeatureCollection, LayerData
from areascope.layers.repository import LayerDataRepository
from helpers import make_rect, point

pytestmark = pytest.mark.unit

ALL_ACTIVE = [
    "poi-food-drink", "poi-shopping", "poi-grocery", "poi-health", "poi-education",
    "buildings-residential", "parks",
]


def _area(area_id: str = "a", **counts) -> ComparisonArea:
    repo = LayerDataRepository(
        LayerData(
            layer_id.replace("_", "-"),
            clipped_features=FeatureCollection.of(point(0.0001 * i, 0) for i in range(n)),
        )
        for layer_id, n in counts.items()
    )
    return ComparisonArea(
        area_id=area_id,
        name=area_id,
        color=AREA_COLORS[0],
        polygon=SelectionPolygon.from_geometry(make_rect(0, 0, 0.01, 0.01)),
        layer_data=repo,
    )


class TestCategoryScore:
    """Count against expected minimum."""

    def test_clamped_to_100(self):
        """Counts above the expected minimum score 100."""
        assert category_score(50, 5) == 100.0

    def test_proportional(self):
        """Below the minimum the score is linear."""
        assert category_score(1, 4) == pytest.approx(25.0)

    def test_zero_expected(self):
        """A zero minimum scores zero rather than dividing."""
        assert category_score(10, 0) == 0.0


class TestScore:
    """Overall score, per-category scores and warnings."""

    def test_no_areas_returns_none(self):
        """No areas, no score."""
        assert score([], ALL_ACTIVE) is None

    def test_all_empty_scores_zero(self):
        """An area without data is Limited."""
        quality = score([_area()], ALL_ACTIVE)
        assert quality.overall_score == 0
        assert quality.label == "Limited"

    def test_overall_is_mean_of_categories_with_data(self):
        """Overall averages only categories with data."""
        quality = score(_area(poi_food_drink=5, poi_shopping=1), ALL_ACTIVE)
        by_id = {c.category: c for c in quality.category_scores}
        assert by_id["poi-food-drink"].score == 100.0
        assert by_id["poi-shopping"].score == pytest.approx(100 / 3)
        assert quality.overall_score == pytest.approx((100 + 100 / 3) / 2)

    def test_average_across_areas(self):
        """Counts are averaged over areas."""
        quality = score([_area("a", poi_food_drink=10), _area("b")], ALL_ACTIVE)
        food = next(c for c in quality.category_scores if c.category == "poi-food-drink")
        assert food.count == pytest.approx(5.0)
        assert food.score == 100.0

    def test_bounds(self):
        """All scores stay within [0, 100]."""
        for counts in ({}, {"poi_food_drink": 1000}, {"poi_health": 1, "parks": 3}):
            quality = score(_area(**counts), ALL_ACTIVE)
            assert 0 <= quality.overall_score <= 100
            assert all(0 <= c.score <= 100 for c in quality.category_scores)

    def test_buildings_category_spans_layers(self):
        """Buildings sums every building layer."""
        quality = score(
            _area(buildings_residential=6, buildings_commercial=4), ["buildings-residential"]
        )
        buildings = next(c for c in quality.category_scores if c.category == "buildings")
        assert buildings.count == 10
        assert buildings.score == 100.0


class TestWarnings:
    """Warnings are raised only for categories whose layers are active."""

    def test_missing_and_low(self):
        """Absent categories warn and thin ones inform."""
        quality = score(
            _area(poi_food_drink=5, poi_shopping=1),
            ["poi-food-drink", "poi-shopping", "poi-grocery"],
        )
        warnings = {(w.type, w.severity) for w in quality.warnings}
        assert warnings == {("missing_category", "warning"), ("low_count", "info")}
        missing = next(w for w in quality.warnings if w.type == "missing_category")
        assert "Grocery" in missing.message

    def test_inactive_categories_silent(self):
        """No active layers, no warnings."""
        quality = score(_area(), [])
        assert quality.warnings == ()

    def test_custom_categories(self):
        """Callers may supply their own categories."""
        categories = (Category("trees", "Trees", ("trees",), expected_min=4),)
        quality = score(_area(trees=2), ["trees"], categories=categories)
        assert quality.overall_score == pytest.approx(50.0)
        assert quality.warnings == ()


class TestSerialization:
    """Labels and dict output."""

    @pytest.mark.parametrize("value,label", [
        (95, "Excellent"), (75, "Good"), (55, "Partial"), (20, "Limited"),
    ])
    def test_labels(self, value, label):
        """Score thresholds map to labels."""
        assert score_label(value) == label

    def test_to_dict(self):
        """Serialized quality carries every field."""
        d = score(_area(parks=1), ["parks"]).to_dict()
        assert d["label"] in {"Excellent", "Good", "Partial", "Limited"}
        assert {"overall_score", "category_scores", "warnings", "last_updated"} <= set(d)
