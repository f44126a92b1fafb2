"""Map data layer system — features, layer manifest and per-area layer data.

GeoJSON and CSV importers live in areascope.layers.parsers; the GeoJSON
exporter in areascope.layers.exporters. All parsers use only Python
stdlib (json, csv).
"""

from areascope.layers.layer import (
    Feature,
    FeatureCollection,
    LayerConfig,
    LayerData,
    LayerStats,
    display_label,
)
from areascope.layers.repository import LayerDataRepository

__all__ = [
    "Feature",
    "FeatureCollection",
    "LayerConfig",
    "LayerData",
    "LayerDataRepository",
    "LayerStats",
    "display_label",
]
