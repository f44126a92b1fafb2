"""Tests for Feature, LayerConfig, LayerStats and the display label helper."""

from __future__ import annotations

import pytest

from areascope.geometry.model import Geometry
from areascope.layers.layer import (
    Feature,
    FeatureCollection,
    LayerConfig,
    LayerData,
    LayerStats,
    display_label,
)

pytestmark = pytest.mark.unit


class TestDisplayLabel:
    """Best-available label picked from arbitrary properties."""

    def test_prefers_name(self):
        """name beats every other key."""
        assert display_label({"amenity": "cafe", "name": "Blue Bottle"}) == "Blue Bottle"

    def test_falls_back_in_key_order(self):
        """Without a name the next key in priority order is used."""
        assert display_label({"shop": "bakery", "brand": "Paul"}) == "Paul"
        assert display_label({"highway": "bus_stop"}) == "bus_stop"

    def test_skips_empty_and_boolean_values(self):
        """Blank strings and booleans are not labels."""
        assert display_label({"name": "  ", "brand": True, "operator": "Metro"}) == "Metro"

    def test_numbers_are_stringified(self):
        """Numeric values are rendered as text."""
        assert display_label({"ref": 42}) == "42"

    def test_none_when_nothing_usable(self):
        """No usable key gives None."""
        assert display_label({}) is None
        assert display_label({"name": None, "unrelated": "x"}) is None

    def test_feature_label_property(self):
        """Feature.label uses the same lookup."""
        feature = Feature(Geometry("Point", [0, 0]), {"name:en": "Central Park"})
        assert feature.label == "Central Park"


class TestFeature:
    """Feature and FeatureCollection basics."""

    def test_with_geometry_keeps_identity(self):
        """Replacing geometry keeps id and properties."""
        feature = Feature(Geometry("Point", [0, 0]), {"name": "A"}, feature_id="f-1")
        moved = feature.with_geometry(Geometry("Point", [1, 1]))
        assert moved.feature_id == "f-1"
        assert moved.properties == {"name": "A"}
        assert moved.geometry.coordinates == [1, 1]
        assert feature.geometry.coordinates == [0, 0]

    def test_collection_protocol(self):
        """Collections are sized, iterable and falsy when empty."""
        collection = FeatureCollection.of(Feature(Geometry("Point", [i, 0])) for i in range(3))
        assert len(collection) == 3
        assert [f.geometry.coordinates[0] for f in collection] == [0, 1, 2]
        assert collection
        assert not FeatureCollection()


class TestLayerConfig:
    """Layer definitions."""

    def test_recipes_and_dict(self):
        """Recipes are queryable and serialized sorted."""
        layer = LayerConfig(
            layer_id="parks",
            name="Parks",
            group="environment",
            geometry_type="polygon",
            stats_recipes=frozenset({"area_share", "area", "count"}),
        )
        assert layer.has_recipe("area_share")
        assert not layer.has_recipe("length")
        d = layer.to_dict()
        assert d["id"] == "parks"
        assert d["stats_recipes"] == ["area", "area_share", "count"]
        assert d["is_custom"] is False


class TestLayerStats:
    """Statistics serialization."""

    def test_to_dict_omits_undeclared_fields(self):
        """Unset statistics are left out."""
        stats = LayerStats(count=7, density=14.0)
        assert stats.to_dict() == {"count": 7, "density": 14.0}

    def test_zero_is_kept(self):
        """A zero statistic is still reported."""
        assert LayerStats(count=0, total_area=0.0).to_dict() == {"count": 0, "total_area": 0.0}

    def test_layer_data_dict(self):
        """LayerData serializes counts and stats."""
        data = LayerData(layer_id="trees", stats=LayerStats(count=2), dropped_count=1)
        d = data.to_dict()
        assert d["clipped_count"] is None
        assert d["stats"] == {"count": 2}
        assert d["dropped_count"] == 1
