"""Tests for the geometry kernel — containment, area, length, centroid, bounds."""

from __future__ import annotations

import math

import pytest

from areascope.errors import DegenerateGeometryError
from areascope.geometry.kernel import (
    EARTH_RADIUS_M,
    bounds_of,
    centroid,
    haversine_distance,
    line_length,
    point_in_polygon,
    polygon_area,
    ring_area,
    validate_geometry,
)
from areascope.geometry.model import Geometry
from helpers import make_rect, make_rect_with_area

pytestmark = pytest.mark.unit


def _with_hole() -> Geometry:
    outer = [[0, 0], [0.01, 0], [0.01, 0.01], [0, 0.01], [0, 0]]
    hole = [[0.004, 0.004], [0.006, 0.004], [0.006, 0.006], [0.004, 0.006], [0.004, 0.004]]
    return Geometry("Polygon", [outer, hole])


def _collapsed() -> Geometry:
    """A closed ring with only two distinct points."""
    return Geometry("Polygon", [[[0, 0], [1, 0], [0, 0]]])


class TestPointInPolygon:
    """Ray casting with boundary-inclusive semantics."""

    def test_inside(self, unit_square):
        """Interior point is inside."""
        assert point_in_polygon([0.005, 0.005], unit_square)

    def test_outside(self, unit_square):
        """Point beyond the right edge is outside."""
        assert not point_in_polygon([0.02, 0.005], unit_square)

    def test_on_edge_counts_as_inside(self, unit_square):
        """Points on an edge are inside."""
        assert point_in_polygon([0.01, 0.005], unit_square)
        assert point_in_polygon([0.005, 0.0], unit_square)

    def test_on_vertex_counts_as_inside(self, unit_square):
        """Points on a vertex are inside."""
        assert point_in_polygon([0.0, 0.0], unit_square)
        assert point_in_polygon([0.01, 0.01], unit_square)

    def test_point_in_hole_is_outside(self):
        """Holes are subtracted."""
        assert not point_in_polygon([0.005, 0.005], _with_hole())

    def test_point_on_hole_boundary_is_inside(self):
        """A hole's boundary belongs to the polygon."""
        assert point_in_polygon([0.004, 0.005], _with_hole())

    def test_point_between_hole_and_outer_is_inside(self):
        """Points in the ring band are inside."""
        assert point_in_polygon([0.002, 0.002], _with_hole())

    def test_multipolygon_any_part(self):
        """MultiPolygon contains a point if any part does."""
        multi = Geometry("MultiPolygon", [
            make_rect(0, 0, 1, 1).coordinates,
            make_rect(5, 5, 6, 6).coordinates,
        ])
        assert point_in_polygon([5.5, 5.5], multi)
        assert point_in_polygon([0.5, 0.5], multi)
        assert not point_in_polygon([3, 3], multi)

    def test_non_polygon_contains_nothing(self):
        """Points cannot contain points."""
        assert not point_in_polygon([0, 0], Geometry("Point", [0, 0]))

    def test_collapsed_ring_contains_nothing(self):
        """A ring with two distinct points has no interior and no boundary."""
        assert polygon_area(_collapsed()) == 0.0
        assert not point_in_polygon([0.5, 0], _collapsed())
        assert not point_in_polygon([0, 0], _collapsed())

    def test_collapsed_hole_is_ignored(self):
        """A degenerate hole does not punch anything out."""
        outer = make_rect(0, 0, 0.01, 0.01).coordinates[0]
        hole = [[0.004, 0.005], [0.006, 0.005], [0.004, 0.005]]
        assert point_in_polygon([0.005, 0.005], Geometry("Polygon", [outer, hole]))


class TestPolygonArea:
    """Spherical ring-formula area."""

    def test_rectangle_matches_closed_form(self):
        """Lon/lat rectangle area equals R²·dλ·(sin φ1 − sin φ0)."""
        geom = make_rect(0.0, 0.0, 0.01, 0.01)
        expected = EARTH_RADIUS_M ** 2 * math.radians(0.01) * math.sin(math.radians(0.01))
        assert polygon_area(geom) == pytest.approx(expected, rel=1e-9)

    def test_exact_area_helper(self):
        """The test helper builds rectangles of a requested area."""
        geom = make_rect_with_area(1_000_000.0, lon0=10.0, lat0=45.0)
        assert polygon_area(geom) == pytest.approx(1_000_000.0, rel=1e-6)

    def test_orientation_independent(self):
        """Clockwise and counter-clockwise rings measure the same."""
        ring = make_rect(0, 0, 0.01, 0.01).coordinates[0]
        assert ring_area(ring) == pytest.approx(ring_area(list(reversed(ring))))

    def test_hole_subtracts(self):
        """Polygon area is outer minus holes."""
        outer_only = polygon_area(make_rect(0, 0, 0.01, 0.01))
        hole_only = polygon_area(make_rect(0.004, 0.004, 0.006, 0.006))
        assert polygon_area(_with_hole()) == pytest.approx(outer_only - hole_only, rel=1e-9)

    def test_multipolygon_sums_parts(self):
        """MultiPolygon area is the sum of its parts."""
        a = make_rect_with_area(50_000.0)
        b = make_rect_with_area(30_000.0, lon0=1.0)
        multi = Geometry("MultiPolygon", [a.coordinates, b.coordinates])
        assert polygon_area(multi) == pytest.approx(80_000.0, rel=1e-6)

    def test_ring_with_two_points_has_zero_area(self):
        """Rings under 3 points are degenerate."""
        assert ring_area([[0, 0], [1, 1]]) == 0.0

    def test_non_polygon_has_zero_area(self):
        """Lines have no area."""
        assert polygon_area(Geometry("LineString", [[0, 0], [1, 1]])) == 0.0

    def test_nan_vertex_propagates(self):
        """NaN coordinates surface as NaN, never as a finite area."""
        ring = [[0, 0], [0.01, 0], [0.01, float("nan")], [0, 0.01], [0, 0]]
        assert math.isnan(polygon_area(Geometry("Polygon", [ring])))


class TestLength:
    """Haversine distances and line lengths."""

    def test_one_degree_of_latitude(self):
        """One degree of latitude is R·π/180."""
        expected = EARTH_RADIUS_M * math.radians(1.0)
        assert haversine_distance([0, 0], [0, 1]) == pytest.approx(expected, rel=1e-9)

    def test_zero_distance(self):
        """Identical points are 0 m apart."""
        assert haversine_distance([12.5, 41.9], [12.5, 41.9]) == 0.0

    def test_antipodal_points(self):
        """Antipodes are half the circumference apart."""
        assert haversine_distance([0, 0], [180, 0]) == pytest.approx(math.pi * EARTH_RADIUS_M)

    def test_line_length_sums_segments(self):
        """Line length sums consecutive segments."""
        geom = Geometry("LineString", [[0, 0], [0, 1], [0, 2]])
        assert line_length(geom) == pytest.approx(2 * EARTH_RADIUS_M * math.radians(1.0), rel=1e-9)

    def test_multilinestring(self):
        """MultiLineString sums its parts."""
        geom = Geometry("MultiLineString", [[[0, 0], [0, 1]], [[5, 0], [5, 1]]])
        assert line_length(geom) == pytest.approx(2 * EARTH_RADIUS_M * math.radians(1.0), rel=1e-9)

    def test_polygon_has_zero_length(self, unit_square):
        """Polygons have no line length."""
        assert line_length(unit_square) == 0.0

    def test_nan_distance_propagates(self):
        """A NaN coordinate gives a NaN distance, not half the globe."""
        assert math.isnan(haversine_distance([0, 0], [float("nan"), 0]))
        assert math.isnan(haversine_distance([0, float("nan")], [0, 0]))

    def test_nan_vertex_line_length_is_nan(self):
        """NaN in any vertex makes the whole length NaN."""
        geom = Geometry("LineString", [[0, 0], [0, 1], [0, float("nan")]])
        assert math.isnan(line_length(geom))


class TestCentroidAndBounds:
    """Vertex-mean centroid and bounding boxes."""

    def test_centroid_ignores_closing_vertex(self):
        """The repeated closing vertex is not double-counted."""
        assert centroid(make_rect(0, 0, 2, 4)) == pytest.approx((1.0, 2.0))

    def test_centroid_of_point(self):
        """A point is its own centroid."""
        assert centroid(Geometry("Point", [3.0, 4.0])) == (3.0, 4.0)

    def test_centroid_of_empty_raises(self):
        """Empty geometries have no centroid."""
        with pytest.raises(DegenerateGeometryError):
            centroid(Geometry("MultiPoint", []))

    def test_bounds(self):
        """Bounds span all vertices."""
        b = bounds_of(Geometry("LineString", [[1, 5], [-2, 3], [4, -1]]))
        assert (b.min_lon, b.max_lon, b.min_lat, b.max_lat) == (-2, 4, -1, 5)


class TestValidateGeometry:
    """Degenerate inputs are reported, never silently measured."""

    def test_valid_polygon_passes(self, unit_square):
        """A proper square validates."""
        validate_geometry(unit_square)

    def test_polygon_with_two_distinct_points(self):
        """Collapsed rings are degenerate."""
        with pytest.raises(DegenerateGeometryError):
            validate_geometry(_collapsed())

    def test_zero_length_line(self):
        """Lines whose vertices coincide are degenerate."""
        with pytest.raises(DegenerateGeometryError):
            validate_geometry(Geometry("LineString", [[1, 1], [1, 1]]))

    def test_nan_coordinate(self):
        """NaN coordinates are rejected."""
        with pytest.raises(DegenerateGeometryError):
            validate_geometry(Geometry("Point", [float("nan"), 0.0]))

    def test_infinite_coordinate(self):
        """Infinite coordinates are rejected."""
        with pytest.raises(DegenerateGeometryError):
            validate_geometry(Geometry("LineString", [[0, 0], [float("inf"), 1]]))

    def test_unsupported_type(self):
        """GeometryCollection is not supported."""
        with pytest.raises(DegenerateGeometryError):
            validate_geometry(Geometry("GeometryCollection", []))

    def test_malformed_coordinates(self):
        """Positions without a latitude are malformed."""
        with pytest.raises(DegenerateGeometryError):
            validate_geometry(Geometry("Polygon", [[[0], [1]]]))

    def test_empty_multipoint(self):
        """A MultiPoint with no members is empty."""
        with pytest.raises(DegenerateGeometryError):
            validate_geometry(Geometry("MultiPoint", []))
