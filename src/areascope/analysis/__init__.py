"""Per-area analysis: layer statistics, category aggregation, derived
metrics, composite indices and data quality scoring."""

from areascope.analysis.categories import (
    POI_CATEGORIES,
    QUALITY_CATEGORIES,
    aggregate,
    compare_area_metrics,
    poi_metrics,
)
from areascope.analysis.derived import DerivedMetrics, DerivedMetricsConfig, derive_metrics
from areascope.analysis.indices import IndexScore, compute_indices
from areascope.analysis.stats import compute_stats

__all__ = [
    "POI_CATEGORIES",
    "QUALITY_CATEGORIES",
    "DerivedMetrics",
    "DerivedMetricsConfig",
    "IndexScore",
    "aggregate",
    "compare_area_metrics",
    "compute_indices",
    "compute_stats",
    "derive_metrics",
    "poi_metrics",
]
