"""Derived urban-form metrics built from categories and clipped geometry.

    land_use_mix          normalized Shannon entropy of building footprint
                          area across residential / commercial /
                          industrial / other, in [0, 1]
    intersection_density  road endpoint clusters per km² (connectivity
                          proxy without a topology model)
    poi_accessibility     weighted sum of category densities
    green_coverage        park area as a percentage of the selection
    transit_stop_density  transit stops per km²
    indices               scored composite indices (walkability, transit,
                          bike, 15-minute city, ...) from analysis.indices

Every ratio with a zero denominator is 0, never NaN or infinity.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping, Sequence

import numpy as np

from areascope.analysis.categories import (
    CategoryMetric,
    POIMetrics,
    aggregate,
    poi_metrics,
)
from areascope.analysis.indices import IndexScore, compute_indices
from areascope.analysis.stats import M2_PER_KM2, total_area
from areascope.geometry.kernel import EARTH_RADIUS_M
from areascope.layers.layer import LayerData
from areascope.layers.repository import LayerDataRepository

BUILDING_LAYERS: dict[str, str] = {
    "residential": "buildings-residential",
    "commercial": "buildings-commercial",
    "industrial": "buildings-industrial",
    "other": "buildings-other",
}

ROAD_LAYERS: tuple[str, ...] = ("roads-primary", "roads-residential")

# Relative importance of each POI category for everyday accessibility.
# Daily needs (grocery, transit) weigh most; bike services least.
DEFAULT_ACCESSIBILITY_WEIGHTS: dict[str, float] = {
    "food": 1.0,
    "shopping": 0.8,
    "grocery": 1.5,
    "health": 1.2,
    "education": 1.0,
    "bike": 0.5,
    "transit": 1.5,
    "green": 1.0,
}


@dataclass(frozen=True)
class DerivedMetricsConfig:
    """Tunable parameters for derived metrics.

    Attributes:
        intersection_tolerance_m: Endpoints closer than this are one node.
        intersection_min_endpoints: Endpoints a node needs to count as an
            intersection (3 = at least a T-junction).
        accessibility_weights: Weight per POI category id.
        road_layer_ids: Line layers forming the street network.
    """

    intersection_tolerance_m: float = 10.0
    intersection_min_endpoints: int = 3
    accessibility_weights: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_ACCESSIBILITY_WEIGHTS)
    )
    road_layer_ids: tuple[str, ...] = ROAD_LAYERS


@dataclass(frozen=True)
class DerivedMetrics:
    """Composite indices for one area."""

    area_km2: float
    land_use_mix: float
    intersection_count: int
    intersection_density: float
    poi_accessibility: float
    green_coverage: float
    transit_stop_density: float
    poi: POIMetrics
    indices: Mapping[str, IndexScore] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "area_km2": self.area_km2,
            "land_use_mix": self.land_use_mix,
            "intersection_count": self.intersection_count,
            "intersection_density": self.intersection_density,
            "poi_accessibility": self.poi_accessibility,
            "green_coverage": self.green_coverage,
            "transit_stop_density": self.transit_stop_density,
            "poi": self.poi.to_dict(),
            "indices": {key: index.to_dict() for key, index in self.indices.items()},
        }


def _repo(layer_data: Mapping[str, LayerData]) -> LayerDataRepository:
    if isinstance(layer_data, LayerDataRepository):
        return layer_data
    return LayerDataRepository(layer_data.values())


def land_use_mix(layer_data: Mapping[str, LayerData]) -> float:
    """Normalized entropy of building footprint area shares, in [0, 1].

    0 when no buildings or a single building type is present; 1 when
    footprint area is split evenly across all tracked types.
    """
    repo = _repo(layer_data)
    areas = [total_area(repo.clipped_or_raw(layer_id)) for layer_id in BUILDING_LAYERS.values()]
    total = sum(areas)
    if total <= 0 or len(areas) < 2:
        return 0.0
    entropy = 0.0
    for area in areas:
        if area > 0:
            p = area / total
            entropy -= p * math.log(p)
    return min(1.0, max(0.0, entropy / math.log(len(areas))))


def _road_endpoints(repo: LayerDataRepository, road_layer_ids: Sequence[str]) -> list[tuple[float, float]]:
    endpoints: list[tuple[float, float]] = []
    for layer_id in road_layer_ids:
        for feature in repo.clipped_or_raw(layer_id):
            geom = feature.geometry
            if geom.type == "LineString":
                lines = [geom.coordinates]
            elif geom.type == "MultiLineString":
                lines = geom.coordinates
            else:
                continue
            for line in lines:
                if len(line) >= 2:
                    endpoints.append((line[0][0], line[0][1]))
                    endpoints.append((line[-1][0], line[-1][1]))
    return endpoints


def cluster_endpoints(
    endpoints: Sequence[tuple[float, float]],
    tolerance_m: float,
) -> list[int]:
    """Group [lon, lat] endpoints lying within tolerance_m of each other.

    Projects to local meters (equirectangular about the mean latitude),
    buckets into a grid of tolerance-sized cells and joins neighbors with
    union-find. Returns the size of each cluster.
    """
    if not endpoints:
        return []
    if tolerance_m <= 0:
        raise ValueError("tolerance_m must be positive")

    coords = np.radians(np.asarray(endpoints, dtype=float))
    lat0 = float(np.mean(coords[:, 1]))
    xy = np.column_stack((
        coords[:, 0] * EARTH_RADIUS_M * math.cos(lat0),
        coords[:, 1] * EARTH_RADIUS_M,
    ))
    cells = np.floor(xy / tolerance_m).astype(np.int64)

    grid: dict[tuple[int, int], list[int]] = {}
    for idx, (cx, cy) in enumerate(cells):
        grid.setdefault((int(cx), int(cy)), []).append(idx)

    parent = list(range(len(endpoints)))

    def find(i: int) -> int:
        while parent[i] != i:
            parent[i] = parent[parent[i]]
            i = parent[i]
        return i

    tol_sq = tolerance_m * tolerance_m
    for (cx, cy), members in grid.items():
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                neighbors = grid.get((cx + dx, cy + dy))
                if not neighbors:
                    continue
                for i in members:
                    for j in neighbors:
                        if j <= i:
                            continue
                        d = xy[i] - xy[j]
                        if float(d[0] * d[0] + d[1] * d[1]) <= tol_sq:
                            ri, rj = find(i), find(j)
                            if ri != rj:
                                parent[rj] = ri

    sizes: dict[int, int] = {}
    for i in range(len(endpoints)):
        root = find(i)
        sizes[root] = sizes.get(root, 0) + 1
    return list(sizes.values())


def intersection_count(
    layer_data: Mapping[str, LayerData],
    config: DerivedMetricsConfig = DerivedMetricsConfig(),
) -> int:
    """Number of road endpoint clusters with enough endpoints to be a junction."""
    endpoints = _road_endpoints(_repo(layer_data), config.road_layer_ids)
    sizes = cluster_endpoints(endpoints, config.intersection_tolerance_m)
    return sum(1 for size in sizes if size >= config.intersection_min_endpoints)


def intersection_density(
    layer_data: Mapping[str, LayerData],
    area_km2: float,
    config: DerivedMetricsConfig = DerivedMetricsConfig(),
) -> float:
    """Intersections per km²; 0 for a zero-area selection."""
    if area_km2 <= 0:
        return 0.0
    return intersection_count(layer_data, config) / area_km2


def poi_accessibility(
    categories: Sequence[CategoryMetric],
    weights: Mapping[str, float] = DEFAULT_ACCESSIBILITY_WEIGHTS,
) -> float:
    """Weighted sum of category densities (per km²).

    Categories without a positive weight contribute nothing.
    """
    total = 0.0
    for category in categories:
        weight = weights.get(category.category_id, 0.0)
        if weight > 0:
            total += weight * category.density
    return total


def green_coverage(layer_data: Mapping[str, LayerData], area_m2: float) -> float:
    """Park area as a percentage of the selection, clamped to [0, 100]."""
    if area_m2 <= 0:
        return 0.0
    parks = total_area(_repo(layer_data).clipped_or_raw("parks"))
    return min(100.0, max(0.0, 100.0 * parks / area_m2))


def derive_metrics(
    layer_data: Mapping[str, LayerData],
    area_m2: float,
    config: DerivedMetricsConfig = DerivedMetricsConfig(),
) -> DerivedMetrics:
    """Compute every derived metric for one area."""
    repo = _repo(layer_data)
    area_km2 = area_m2 / M2_PER_KM2 if area_m2 > 0 else 0.0
    categories = aggregate(repo, area_km2)
    intersections = intersection_count(repo, config)
    stops = repo.feature_count("transit-stops")

    return DerivedMetrics(
        area_km2=area_km2,
        land_use_mix=land_use_mix(repo),
        intersection_count=intersections,
        intersection_density=intersections / area_km2 if area_km2 > 0 else 0.0,
        poi_accessibility=poi_accessibility(categories, config.accessibility_weights),
        green_coverage=green_coverage(repo, area_m2),
        transit_stop_density=stops / area_km2 if area_km2 > 0 else 0.0,
        poi=poi_metrics(repo, area_km2),
        indices=compute_indices(repo, area_km2, intersections, config.road_layer_ids),
    )
