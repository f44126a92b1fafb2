"""Shared geometry and layer fixtures."""

from __future__ import annotations

import pytest

from areascope.layers.layer import FeatureCollection
from helpers import make_rect, make_rect_with_area, point


@pytest.fixture
def rect():
    return make_rect


@pytest.fixture
def rect_with_area():
    return make_rect_with_area


@pytest.fixture
def unit_square():
    """0.01° square at the equator (roughly 1.24 km²)."""
    return make_rect(0.0, 0.0, 0.01, 0.01)


@pytest.fixture
def points_collection():
    """Three points inside the unit square, two outside."""
    return FeatureCollection.of([
        point(0.002, 0.002, name="Inside A"),
        point(0.005, 0.005, name="Inside B"),
        point(0.009, 0.001, name="Inside C"),
        point(0.02, 0.02, name="Outside A"),
        point(-0.001, 0.005, name="Outside B"),
    ])
