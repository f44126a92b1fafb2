"""Tests for the feature clipper — points, lines, polygons, degenerate input."""

from __future__ import annotations

import pytest

from areascope.errors import EmptySelectionError
from areascope.geometry.clip import clip, clip_features
from areascope.geometry.kernel import line_length, polygon_area
from areascope.geometry.model import Geometry
from areascope.layers.layer import Feature, FeatureCollection
from helpers import line, make_rect, point, polygon_feature

pytestmark = pytest.mark.unit


@pytest.fixture
def polygons():
    """Inside, straddling, touching and outside polygons vs. the unit square."""
    return FeatureCollection.of([
        polygon_feature(make_rect(0.002, 0.002, 0.004, 0.004), "inside", name="Inside"),
        polygon_feature(make_rect(0.005, 0.0, 0.015, 0.01), "straddle", name="Straddle"),
        polygon_feature(make_rect(0.01, 0.0, 0.02, 0.01), "touching"),
        polygon_feature(make_rect(0.05, 0.05, 0.06, 0.06), "outside"),
    ])


class TestClipPoints:
    """Points are kept iff inside (boundary inclusive)."""

    def test_keeps_only_inside_points(self, points_collection, unit_square):
        """Only points inside the square survive."""
        result = clip(points_collection, unit_square)
        names = [f.properties["name"] for f in result.features]
        assert names == ["Inside A", "Inside B", "Inside C"]
        assert result.dropped_count == 0

    def test_boundary_point_kept(self, unit_square):
        """Points on the boundary count as inside."""
        features = FeatureCollection.of([point(0.01, 0.005), point(0.0, 0.0)])
        assert len(clip_features(features, unit_square)) == 2

    def test_multipoint_kept_if_any_member_inside(self, unit_square):
        """One inside member keeps the whole MultiPoint."""
        multi = Feature(Geometry("MultiPoint", [[0.5, 0.5], [0.005, 0.005]]))
        far = Feature(Geometry("MultiPoint", [[0.5, 0.5], [0.6, 0.6]]))
        result = clip_features(FeatureCollection.of([multi, far]), unit_square)
        assert list(result) == [multi]


class TestClipLines:
    """Lines are kept whole, never split."""

    def test_line_with_vertex_inside_kept_whole(self, unit_square):
        """A kept line keeps its full length."""
        feature = line((0.005, 0.005), (0.05, 0.005))
        result = clip_features(FeatureCollection.of([feature]), unit_square)
        assert len(result) == 1
        assert line_length(result.features[0].geometry) == pytest.approx(
            line_length(feature.geometry)
        )

    def test_line_crossing_without_inside_vertex_kept(self, unit_square):
        """A line crossing the selection is kept."""
        feature = line((-0.005, 0.005), (0.015, 0.005))
        result = clip_features(FeatureCollection.of([feature]), unit_square)
        assert list(result) == [feature]

    def test_line_outside_dropped(self, unit_square):
        """A line entirely outside is dropped."""
        feature = line((0.02, 0.0), (0.03, 0.0))
        assert len(clip_features(FeatureCollection.of([feature]), unit_square)) == 0


class TestClipPolygons:
    """Polygons are replaced by their intersection with the selection."""

    def test_fully_inside_unchanged(self, polygons, unit_square):
        """A polygon inside the selection is returned as is."""
        result = clip_features(polygons, unit_square)
        inside = next(f for f in result if f.feature_id == "inside")
        assert inside == polygons.features[0]

    def test_straddling_polygon_is_cut(self, polygons, unit_square):
        """Only the inside part of a straddling polygon remains."""
        result = clip_features(polygons, unit_square)
        cut = next(f for f in result if f.feature_id == "straddle")
        expected = polygon_area(make_rect(0.005, 0.0, 0.01, 0.01))
        assert polygon_area(cut.geometry) == pytest.approx(expected, rel=1e-6)
        assert cut.properties == {"name": "Straddle"}

    def test_touching_and_outside_dropped(self, polygons, unit_square):
        """Edge contact alone does not keep a polygon."""
        ids = [f.feature_id for f in clip_features(polygons, unit_square)]
        assert ids == ["inside", "straddle"]

    def test_containment(self, polygons, unit_square):
        """No clipped polygon is larger than its source feature."""
        originals = {f.feature_id: f for f in polygons}
        for feature in clip_features(polygons, unit_square):
            assert polygon_area(feature.geometry) <= (
                polygon_area(originals[feature.feature_id].geometry) + 1e-6
            )

    def test_selection_with_hole(self):
        """A polygon inside the selection's hole is dropped."""
        outer = make_rect(0, 0, 0.01, 0.01).coordinates[0]
        hole = make_rect(0.004, 0.004, 0.006, 0.006).coordinates[0]
        selection = Geometry("Polygon", [outer, hole])
        inside_hole = polygon_feature(make_rect(0.0045, 0.0045, 0.0055, 0.0055), "in-hole")
        result = clip_features(FeatureCollection.of([inside_hole]), selection)
        assert len(result) == 0

    def test_multipolygon_selection(self):
        """Clipping to a MultiPolygon keeps both overlaps."""
        selection = Geometry("MultiPolygon", [
            make_rect(0, 0, 0.01, 0.01).coordinates,
            make_rect(0.02, 0, 0.03, 0.01).coordinates,
        ])
        spanning = polygon_feature(make_rect(0.005, 0.0, 0.025, 0.01), "span")
        result = clip_features(FeatureCollection.of([spanning]), selection)
        expected = 2 * polygon_area(make_rect(0.005, 0.0, 0.01, 0.01))
        assert polygon_area(result.features[0].geometry) == pytest.approx(expected, rel=1e-6)


class TestClipProperties:
    """Clipping is stable and order-preserving."""

    def test_idempotent(self, polygons, points_collection, unit_square):
        """Clipping an already-clipped collection changes nothing."""
        features = FeatureCollection.of(list(polygons) + list(points_collection))
        once = clip_features(features, unit_square)
        twice = clip_features(once, unit_square)
        assert len(twice) == len(once)
        for a, b in zip(once, twice):
            assert a.feature_id == b.feature_id
            assert a.geometry.type == b.geometry.type
            assert polygon_area(a.geometry) == pytest.approx(polygon_area(b.geometry), rel=1e-9)

    def test_order_preserved(self, points_collection, unit_square):
        """Kept features stay in source order."""
        result = clip_features(points_collection, unit_square)
        source_order = [f.properties["name"] for f in points_collection]
        kept = [f.properties["name"] for f in result]
        assert kept == [n for n in source_order if n in kept]


class TestDegenerateInput:
    """Degenerate features are dropped and counted, never fatal."""

    def test_degenerate_features_counted(self, unit_square):
        """Degenerate features are counted as dropped."""
        features = FeatureCollection.of([
            Feature(Geometry("Polygon", [[[0, 0], [0.001, 0.001], [0, 0]]])),
            Feature(Geometry("LineString", [[0.001, 0.001], [0.001, 0.001]])),
            Feature(Geometry("Point", [float("nan"), 0.0])),
            point(0.005, 0.005),
        ])
        result = clip(features, unit_square)
        assert result.dropped_count == 3
        assert len(result.features) == 1

    def test_family_mismatch_dropped(self, points_collection, unit_square):
        """Features of the wrong family are dropped."""
        result = clip(points_collection, unit_square, geometry_type="polygon")
        assert len(result.features) == 0
        assert result.dropped_count == len(points_collection)

    def test_empty_collection(self, unit_square):
        """Nothing in, nothing out."""
        result = clip(FeatureCollection(), unit_square)
        assert len(result.features) == 0
        assert result.dropped_count == 0


class TestInvalidSelection:
    """Selections that enclose no area raise EmptySelectionError."""

    def test_zero_area_selection(self, points_collection):
        """A collinear selection is empty."""
        collinear = Geometry("Polygon", [[[0, 0], [0.005, 0], [0.01, 0], [0, 0]]])
        with pytest.raises(EmptySelectionError):
            clip(points_collection, collinear)

    def test_non_polygon_selection(self, points_collection):
        """A point selection is rejected."""
        with pytest.raises(EmptySelectionError):
            clip(points_collection, Geometry("Point", [0, 0]))

    def test_degenerate_selection(self, points_collection):
        """A zero-width rectangle is rejected."""
        with pytest.raises(EmptySelectionError):
            clip(points_collection, make_rect(0, 0, 0, 0.01))
