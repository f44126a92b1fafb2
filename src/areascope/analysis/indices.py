"""Composite urban indices — walkability, transit, bike, 15-minute city, ...

Each index returns an IndexScore: a value on a fixed scale, a confidence
level reflecting how many of its input layers carry data, and a breakdown
of the intermediate numbers so a reader can see where the score came from.

    diversity_index      0-100  normalized Shannon entropy over POI layers
    green_ratio          %      parks + water area share of the selection
    street_connectivity  /km²   road junction density
    building_density     %      building footprint share of the selection
    transit_coverage     0-100  mode-weighted stop density, log-normalized
    mixed_use_score      0-100  residential / commercial footprint balance
    walkability_proxy    0-100  amenity density per walk category (85)
                                plus a junction-density bonus (15)
    fifteen_min_score    0-100  share of essential categories present
    bike_score           0-100  lanes 50%, amenities 30%, connectivity 20%

Densities stand in for distances: with no routing model, more amenities
per km² means more of them within walking or cycling reach. Every index
is 0 (never NaN or infinite) when its denominators are zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping

from areascope.analysis.stats import M2_PER_KM2, total_area, total_length
from areascope.layers.layer import LayerData
from areascope.layers.repository import LayerDataRepository

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

DIVERSITY_LAYERS: tuple[str, ...] = (
    "poi-food-drink",
    "poi-shopping",
    "poi-grocery",
    "poi-health",
    "poi-education",
)

GREEN_LAYERS: tuple[str, ...] = ("parks", "water")

BUILDING_FOOTPRINT_LAYERS: tuple[str, ...] = (
    "buildings-residential",
    "buildings-commercial",
    "buildings-industrial",
    "buildings-other",
)

# Rail stations are assumed to run more often than bus stops
TRANSIT_MODE_WEIGHTS: dict[str, float] = {
    "rail-lines": 2.0,
    "transit-stops": 1.0,
}

# Mode-weighted stops per km² that scores 100 (dense downtown transit)
TRANSIT_HIGH_DENSITY = 50.0


@dataclass(frozen=True)
class WalkCategory:
    """One amenity category of the walkability proxy.

    max_count is a per-km² reference count; twice that density scores 100.
    """

    category_id: str
    layer_ids: tuple[str, ...]
    weight: float
    max_count: int


WALK_CATEGORIES: tuple[WalkCategory, ...] = (
    WalkCategory("grocery", ("poi-grocery",), 3, 5),
    WalkCategory("restaurants", ("poi-food-drink",), 3, 10),
    WalkCategory("shopping", ("poi-shopping",), 2, 5),
    WalkCategory("coffee", ("poi-food-drink",), 2, 4),
    WalkCategory("parks", ("parks",), 2, 3),
    WalkCategory("schools", ("poi-education",), 2, 3),
    WalkCategory("healthcare", ("poi-health",), 1, 2),
)

WALK_AMENITY_MAX = 85.0
WALK_PEDESTRIAN_MAX = 15.0

# Junctions per km² at which a street grid counts as fully connected
CONNECTED_GRID_DENSITY = 100.0

ESSENTIAL_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("food", ("poi-food-drink", "poi-grocery")),
    ("healthcare", ("poi-health",)),
    ("education", ("poi-education",)),
    ("green_space", ("parks",)),
    ("transit", ("transit-stops", "rail-lines")),
)

BIKE_WEIGHTS: dict[str, float] = {
    "infrastructure": 0.50,
    "amenities": 0.30,
    "connectivity": 0.20,
}

# Reference densities for top cycling cities
BIKE_EXCELLENT_LANE_KM_PER_KM2 = 5.0
BIKE_EXCELLENT_PARKING_DENSITY = 50.0
BIKE_EXCELLENT_SHOP_DENSITY = 2.0


@dataclass(frozen=True)
class IndexScore:
    """A composite index value with its confidence and breakdown."""

    value: float
    confidence: str = LOW
    breakdown: Mapping[str, float] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "value": self.value,
            "confidence": self.confidence,
            "breakdown": dict(self.breakdown),
        }


def _repo(layer_data: Mapping[str, LayerData]) -> LayerDataRepository:
    if isinstance(layer_data, LayerDataRepository):
        return layer_data
    return LayerDataRepository(layer_data.values())


def log_score(density: float, reference: float) -> float:
    """100·ln(1 + density) / ln(1 + reference), capped at 100.

    Diminishing returns: doubling an already high density adds little.
    """
    if density <= 0 or reference <= 0:
        return 0.0
    return min(100.0, math.log1p(density) / math.log1p(reference) * 100.0)


def density_to_walk_score(density: float, max_density: float) -> float:
    """Score one walk category from its amenity density, in [0, 100]."""
    if density <= 0 or max_density <= 0:
        return 0.0
    normalized = min(density / max_density, 1.0)
    return min(100.0, math.log1p(normalized * 10) / math.log1p(10) * 100.0)


def diversity_index(layer_data: Mapping[str, LayerData]) -> IndexScore:
    """Shannon entropy over POI layer counts, normalized to 0-100.

    Confidence reflects how many of the POI layers were loaded at all.
    """
    repo = _repo(layer_data)
    counts = {
        layer_id: float(repo.feature_count(layer_id))
        for layer_id in DIVERSITY_LAYERS
        if layer_id in repo
    }
    total = sum(counts.values())
    available = len(counts)
    if total <= 0:
        return IndexScore(0.0, LOW, counts)

    entropy = 0.0
    for count in counts.values():
        if count > 0:
            p = count / total
            entropy -= p * math.log(p)
    value = entropy / math.log(len(DIVERSITY_LAYERS)) * 100.0

    if available >= len(DIVERSITY_LAYERS) * 0.8:
        confidence = HIGH
    elif available >= len(DIVERSITY_LAYERS) * 0.5:
        confidence = MEDIUM
    else:
        confidence = LOW
    return IndexScore(value, confidence, counts)


def _area_share(repo: LayerDataRepository, layer_ids: tuple[str, ...], area_km2: float):
    breakdown: dict[str, float] = {}
    covered = 0.0
    for layer_id in layer_ids:
        area = total_area(repo.clipped_or_raw(layer_id))
        if area > 0:
            breakdown[layer_id] = area
            covered += area
    area_m2 = area_km2 * M2_PER_KM2
    share = min(100.0, covered / area_m2 * 100.0) if area_m2 > 0 else 0.0
    return share, breakdown


def green_ratio(layer_data: Mapping[str, LayerData], area_km2: float) -> IndexScore:
    """Parks and water as a percentage of the selection, capped at 100."""
    share, breakdown = _area_share(_repo(layer_data), GREEN_LAYERS, area_km2)
    return IndexScore(share, HIGH if breakdown else LOW, breakdown)


def building_density(layer_data: Mapping[str, LayerData], area_km2: float) -> IndexScore:
    """Building footprint as a percentage of the selection, capped at 100."""
    share, breakdown = _area_share(_repo(layer_data), BUILDING_FOOTPRINT_LAYERS, area_km2)
    if len(breakdown) >= 2:
        confidence = HIGH
    elif breakdown:
        confidence = MEDIUM
    else:
        confidence = LOW
    return IndexScore(share, confidence, breakdown)


def street_connectivity(
    layer_data: Mapping[str, LayerData],
    intersections: int,
    area_km2: float,
    road_layer_ids: tuple[str, ...] = ("roads-primary", "roads-residential"),
) -> IndexScore:
    """Junctions per km², with the road length they were found on."""
    repo = _repo(layer_data)
    lengths = {layer_id: total_length(repo.clipped_or_raw(layer_id)) for layer_id in road_layer_ids}
    with_roads = sum(1 for length in lengths.values() if length > 0)
    density = intersections / area_km2 if area_km2 > 0 else 0.0

    if road_layer_ids and with_roads == len(road_layer_ids):
        confidence = HIGH
    elif with_roads:
        confidence = MEDIUM
    else:
        confidence = LOW
    breakdown = {"intersections": float(intersections), **{f"{k}_length_m": v for k, v in lengths.items()}}
    return IndexScore(density, confidence, breakdown)


def transit_coverage(layer_data: Mapping[str, LayerData], area_km2: float) -> IndexScore:
    """Mode-weighted transit stop density on a logarithmic 0-100 scale.

    Rail counts double. 50 weighted stops per km² scores 100, 20 about 77
    and 5 about 46.
    """
    repo = _repo(layer_data)
    breakdown: dict[str, float] = {}
    weighted_sum = 0.0
    total_stops = 0
    present: set[str] = set()

    for layer_id, weight in TRANSIT_MODE_WEIGHTS.items():
        if layer_id not in repo:
            continue
        count = repo.feature_count(layer_id)
        breakdown[f"{layer_id}_count"] = float(count)
        breakdown[f"{layer_id}_weighted"] = count * weight
        weighted_sum += count * weight
        total_stops += count
        if count > 0:
            present.add(layer_id)

    breakdown["total_stops"] = float(total_stops)
    breakdown["weighted_sum"] = weighted_sum

    if weighted_sum == 0 or area_km2 <= 0:
        return IndexScore(0.0, LOW, breakdown)

    weighted_density = weighted_sum / area_km2
    breakdown["weighted_density"] = weighted_density
    value = log_score(weighted_density, TRANSIT_HIGH_DENSITY)

    confidence = HIGH if len(present) == len(TRANSIT_MODE_WEIGHTS) else MEDIUM
    return IndexScore(value, confidence, breakdown)


def mixed_use_score(layer_data: Mapping[str, LayerData]) -> IndexScore:
    """(1 - |residential share - commercial share|) · 100.

    100 when residential and commercial footprints are equal, 0 when only
    one of them is present.
    """
    repo = _repo(layer_data)
    residential = total_area(repo.clipped_or_raw("buildings-residential"))
    commercial = total_area(repo.clipped_or_raw("buildings-commercial"))
    breakdown = {"buildings-residential": residential, "buildings-commercial": commercial}
    combined = residential + commercial
    if combined <= 0:
        return IndexScore(0.0, LOW, breakdown)
    balance = abs(residential - commercial) / combined
    return IndexScore((1.0 - balance) * 100.0, HIGH, breakdown)


def walkability_proxy(
    layer_data: Mapping[str, LayerData],
    area_km2: float,
    intersection_density: float,
) -> IndexScore:
    """Walk-score-style proxy from amenity densities and street junctions.

    Up to 85 points come from the weighted category scores and up to 15
    from junction density (100 per km² earns the full bonus).
    """
    repo = _repo(layer_data)
    breakdown: dict[str, float] = {}
    weighted = 0.0
    weight_total = 0.0
    with_data = 0

    for category in WALK_CATEGORIES:
        count = sum(repo.feature_count(layer_id) for layer_id in category.layer_ids)
        density = count / area_km2 if area_km2 > 0 else 0.0
        score = density_to_walk_score(density, category.max_count * 2)
        breakdown[f"{category.category_id}_count"] = float(count)
        breakdown[f"{category.category_id}_score"] = score
        weighted += score * category.weight
        weight_total += category.weight
        if count > 0:
            with_data += 1

    amenity = weighted / weight_total * WALK_AMENITY_MAX / 100.0 if weight_total > 0 else 0.0
    bonus = min(WALK_PEDESTRIAN_MAX, intersection_density / CONNECTED_GRID_DENSITY * WALK_PEDESTRIAN_MAX)
    breakdown["amenity_component"] = amenity
    breakdown["intersection_density"] = intersection_density
    breakdown["pedestrian_bonus"] = bonus
    breakdown["categories_with_data"] = float(with_data)

    if with_data >= 5:
        confidence = HIGH
    elif with_data >= 3:
        confidence = MEDIUM
    else:
        confidence = LOW
    return IndexScore(min(100.0, amenity + bonus), confidence, breakdown)


def fifteen_min_score(layer_data: Mapping[str, LayerData]) -> IndexScore:
    """Percentage of essential categories with at least one feature."""
    repo = _repo(layer_data)
    breakdown: dict[str, float] = {}
    for category_id, layer_ids in ESSENTIAL_CATEGORIES:
        present = any(repo.feature_count(layer_id) > 0 for layer_id in layer_ids)
        breakdown[category_id] = 1.0 if present else 0.0
    value = sum(breakdown.values()) / len(ESSENTIAL_CATEGORIES) * 100.0
    return IndexScore(value, HIGH, breakdown)


def bike_score(
    layer_data: Mapping[str, LayerData],
    area_km2: float,
    intersection_density: float,
) -> IndexScore:
    """Cycling friendliness from lanes, bike amenities and street junctions.

    Topography is not modelled, so hilly areas score as flat ones would.
    """
    if area_km2 <= 0:
        return IndexScore(0.0, LOW, {})

    repo = _repo(layer_data)
    lane_length = total_length(repo.clipped_or_raw("bike-lanes"))
    lane_density = lane_length / 1000.0 / area_km2
    infrastructure = log_score(lane_density, BIKE_EXCELLENT_LANE_KM_PER_KM2)

    parking = repo.feature_count("poi-bike-parking")
    shops = repo.feature_count("poi-bike-shops")
    parking_score = log_score(parking / area_km2, BIKE_EXCELLENT_PARKING_DENSITY)
    shops_score = log_score(shops / area_km2, BIKE_EXCELLENT_SHOP_DENSITY)
    amenities = parking_score * 0.7 + shops_score * 0.3

    connectivity = min(100.0, intersection_density / CONNECTED_GRID_DENSITY * 100.0)

    value = (
        infrastructure * BIKE_WEIGHTS["infrastructure"]
        + amenities * BIKE_WEIGHTS["amenities"]
        + connectivity * BIKE_WEIGHTS["connectivity"]
    )
    breakdown = {
        "bike_lane_length_m": lane_length,
        "bike_lane_density": lane_density,
        "infrastructure_score": infrastructure,
        "bike_parking_count": float(parking),
        "bike_shops_count": float(shops),
        "parking_score": parking_score,
        "shops_score": shops_score,
        "amenities_score": amenities,
        "intersection_density": intersection_density,
        "connectivity_score": connectivity,
    }

    has_lanes = lane_length > 0
    has_amenities = parking > 0 or shops > 0
    if has_lanes and has_amenities:
        confidence = HIGH
    elif has_lanes or has_amenities:
        confidence = MEDIUM
    else:
        confidence = LOW
    return IndexScore(min(100.0, value), confidence, breakdown)


def compute_indices(
    layer_data: Mapping[str, LayerData],
    area_km2: float,
    intersections: int,
    road_layer_ids: tuple[str, ...] = ("roads-primary", "roads-residential"),
) -> dict[str, IndexScore]:
    """Every composite index for one area, keyed by index id."""
    repo = _repo(layer_data)
    junction_density = intersections / area_km2 if area_km2 > 0 else 0.0
    return {
        "diversity_index": diversity_index(repo),
        "green_ratio": green_ratio(repo, area_km2),
        "street_connectivity": street_connectivity(repo, intersections, area_km2, road_layer_ids),
        "building_density": building_density(repo, area_km2),
        "transit_coverage": transit_coverage(repo, area_km2),
        "mixed_use_score": mixed_use_score(repo),
        "walkability_proxy": walkability_proxy(repo, area_km2, junction_density),
        "fifteen_min_score": fifteen_min_score(repo),
        "bike_score": bike_score(repo, area_km2, junction_density),
    }
