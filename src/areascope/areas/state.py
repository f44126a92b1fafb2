"""AppState — explicit composition root for layers, selections and areas.

Holds everything the UI would otherwise keep in a global store:

    layers      manifest + custom layers, the active set, raw features
                per layer with a data version bumped on every load
    selection   the working (unsaved) selection and its layer data
    areas       the ComparisonAreaManager

Recomputation is synchronous. Per-area layer data is cached under
(area_id, layer_id) together with the (polygon_version, data_version)
it was computed from; a stale entry is simply recomputed, so the latest
polygon or data load always wins.
"""

from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from areascope.analysis.categories import MetricComparison, compare_area_metrics, poi_metrics
from areascope.analysis.derived import DerivedMetrics, DerivedMetricsConfig, derive_metrics
from areascope.analysis.insights import Insight, generate_insights
from areascope.analysis.quality import DataQuality
from areascope.analysis.quality import score as score_quality
from areascope.analysis.stats import compute_stats
from areascope.areas.manager import ComparisonAreaManager, ComparisonMatrix
from areascope.areas.models import DEFAULT_MAX_AREAS, ComparisonArea, SelectionPolygon
from areascope.errors import EmptySelectionError
from areascope.geometry.clip import clip
from areascope.geometry.model import Geometry
from areascope.layers.exporters.geojson import export_geojson
from areascope.layers.layer import EMPTY_COLLECTION, FeatureCollection, LayerConfig, LayerData
from areascope.layers.manifest import LAYERS, create_custom_layer, sorted_layers
from areascope.layers.parsers.csv_import import parse_csv
from areascope.layers.parsers.geojson import parse_geojson
from areascope.layers.repository import LayerDataRepository

CacheKey = tuple[str, str]
CacheVersion = tuple[int, int]


class AppState:
    """Single owner of all mutable analysis state.

    Args:
        max_areas: Maximum number of coexisting comparison areas.
        metrics_config: Parameters for derived metrics.
        active_layers: Layer ids active at start.
    """

    def __init__(
        self,
        max_areas: int = DEFAULT_MAX_AREAS,
        metrics_config: Optional[DerivedMetricsConfig] = None,
        active_layers: Iterable[str] = (),
    ) -> None:
        self.manager = ComparisonAreaManager(max_areas=max_areas)
        self.metrics_config = metrics_config or DerivedMetricsConfig()
        self._custom_layers: dict[str, LayerConfig] = {}
        self._raw: dict[str, FeatureCollection] = {}
        self._data_versions: dict[str, int] = {}
        self._cache: dict[CacheKey, tuple[CacheVersion, LayerData]] = {}
        self._selection: Optional[SelectionPolygon] = None
        self._selection_data = LayerDataRepository()
        self._active: tuple[str, ...] = ()
        ids = list(active_layers)
        if ids:
            self.set_active_layers(ids)

    # ------------------------------------------------------------------
    # Layers
    # ------------------------------------------------------------------

    def layer_configs(self) -> list[LayerConfig]:
        """Manifest and custom layers in group/priority order."""
        return sorted_layers(list(LAYERS) + list(self._custom_layers.values()))

    def get_layer(self, layer_id: str) -> Optional[LayerConfig]:
        for layer in LAYERS:
            if layer.layer_id == layer_id:
                return layer
        return self._custom_layers.get(layer_id)

    def require_layer(self, layer_id: str) -> LayerConfig:
        layer = self.get_layer(layer_id)
        if layer is None:
            raise KeyError(f"Unknown layer: {layer_id}")
        return layer

    @property
    def custom_layers(self) -> list[LayerConfig]:
        return list(self._custom_layers.values())

    @property
    def active_layer_ids(self) -> tuple[str, ...]:
        return self._active

    @property
    def active_layers(self) -> list[LayerConfig]:
        return sorted_layers(self.require_layer(layer_id) for layer_id in self._active)

    def set_active_layers(self, layer_ids: Iterable[str]) -> None:
        """Replace the active layer set and recompute every area.

        Raises:
            KeyError: If any id is unknown (nothing changes).
        """
        ids = list(dict.fromkeys(layer_ids))
        for layer_id in ids:
            self.require_layer(layer_id)
        self._active = tuple(ids)
        self.recompute_all()

    def toggle_layer(self, layer_id: str) -> bool:
        """Flip a layer's active state. Returns True if it is now active."""
        self.require_layer(layer_id)
        if layer_id in self._active:
            self.set_active_layers(i for i in self._active if i != layer_id)
            return False
        self.set_active_layers(self._active + (layer_id,))
        return True

    def raw_features(self, layer_id: str) -> FeatureCollection:
        return self._raw.get(layer_id, EMPTY_COLLECTION)

    def set_layer_features(self, layer_id: str, features: FeatureCollection) -> None:
        """Load raw features for a layer and recompute dependent data.

        Raises:
            KeyError: If the layer is unknown.
        """
        self.require_layer(layer_id)
        self._raw[layer_id] = features
        self._data_versions[layer_id] = self._data_versions.get(layer_id, 0) + 1
        logger.debug(f"Loaded {len(features)} features for {layer_id}")
        if layer_id in self._active:
            self.recompute_all()

    def add_custom_layer(self, layer: LayerConfig, features: FeatureCollection) -> LayerConfig:
        """Register a custom layer with its data and activate it."""
        self._custom_layers[layer.layer_id] = layer
        self._raw[layer.layer_id] = features
        self._data_versions[layer.layer_id] = self._data_versions.get(layer.layer_id, 0) + 1
        logger.info(f"Added custom layer '{layer.name}' ({layer.layer_id}, {len(features)} features)")
        self.set_active_layers(self._active + (layer.layer_id,))
        return layer

    def import_custom_layer(
        self,
        name: str,
        content: str,
        source_type: str,
        file_name: str = "",
    ) -> LayerConfig:
        """Parse uploaded GeoJSON or CSV content into a new custom layer.

        Raises:
            ValueError: On an unknown source type, unparseable content or
                content without usable features.
        """
        if source_type == "geojson":
            features = parse_geojson(content)
        elif source_type == "csv":
            result = parse_csv(content)
            if result.error_count:
                logger.warning(
                    f"CSV import '{name}': skipped {result.error_count} of "
                    f"{result.row_count} rows with invalid coordinates"
                )
            features = result.features
        else:
            raise ValueError(f"Unsupported source type: {source_type}")

        if not features:
            raise ValueError(f"No features found in uploaded {source_type} data")
        layer = create_custom_layer(name, features, source_type, file_name=file_name)
        return self.add_custom_layer(layer, features)

    def remove_custom_layer(self, layer_id: str) -> None:
        """Delete a custom layer, its data and any cached results for it.

        Raises:
            KeyError: If no custom layer has this id.
        """
        if layer_id not in self._custom_layers:
            raise KeyError(f"Unknown custom layer: {layer_id}")
        del self._custom_layers[layer_id]
        self._raw.pop(layer_id, None)
        self._data_versions.pop(layer_id, None)
        self._cache = {k: v for k, v in self._cache.items() if k[1] != layer_id}
        self._active = tuple(i for i in self._active if i != layer_id)
        self.recompute_all()

    # ------------------------------------------------------------------
    # Working selection
    # ------------------------------------------------------------------

    @property
    def selection(self) -> Optional[SelectionPolygon]:
        return self._selection

    @property
    def selection_data(self) -> LayerDataRepository:
        return self._selection_data

    def set_selection(self, geometry: Optional[Geometry]) -> Optional[SelectionPolygon]:
        """Set (or clear, with None) the working selection and compute its stats."""
        if geometry is None:
            self._selection = None
            self._selection_data = LayerDataRepository()
            return None
        version = self._selection.version + 1 if self._selection is not None else 0
        self._selection = SelectionPolygon.from_geometry(geometry, version=version)
        self._selection_data = LayerDataRepository(
            self._compute_layer(layer, self._selection) for layer in self.active_layers
        )
        return self._selection

    def pin_selection(self, name: str = "") -> str:
        """Save the working selection as a comparison area and clear it.

        Raises:
            ValueError: If there is no working selection.
            TooManyAreasError: If the area limit is reached (the selection
                is kept).
        """
        if self._selection is None:
            raise ValueError("No active selection to pin")
        area_id = self.add_area(name, self._selection.geometry)
        self.set_selection(None)
        return area_id

    # ------------------------------------------------------------------
    # Areas
    # ------------------------------------------------------------------

    @property
    def areas(self) -> tuple[ComparisonArea, ...]:
        return self.manager.areas

    def get_area(self, area_id: str) -> ComparisonArea:
        return self.manager.require_area(area_id)

    def add_area(self, name: str, geometry: Geometry) -> str:
        area_id = self.manager.add_area(name, geometry)
        self.recompute_area(area_id)
        return area_id

    def update_area_polygon(self, area_id: str, geometry: Geometry) -> ComparisonArea:
        self.manager.update_area_polygon(area_id, geometry)
        return self.recompute_area(area_id)

    def rename_area(self, area_id: str, name: str) -> ComparisonArea:
        self.manager.rename_area(area_id, name)
        return self.manager.require_area(area_id)

    def move_area(self, area_id: str, direction: str) -> list[ComparisonArea]:
        self.manager.reorder_manual(area_id, direction)
        return self.manager.sort_by("manual")

    def remove_area(self, area_id: str) -> None:
        self.manager.remove_area(area_id)
        self._cache = {k: v for k, v in self._cache.items() if k[0] != area_id}

    # ------------------------------------------------------------------
    # Recompute
    # ------------------------------------------------------------------

    def _compute_layer(self, layer: LayerConfig, selection: SelectionPolygon) -> LayerData:
        raw = self.raw_features(layer.layer_id)
        try:
            result = clip(raw, selection.geometry, layer.geometry_type)
            clipped, dropped = result.features, result.dropped_count
        except EmptySelectionError as e:
            logger.warning(f"Selection has no measurable area, {layer.layer_id} left empty: {e}")
            clipped, dropped = EMPTY_COLLECTION, 0
        return LayerData(
            layer_id=layer.layer_id,
            features=raw,
            clipped_features=clipped,
            stats=compute_stats(layer, clipped, selection.area_m2),
            dropped_count=dropped,
        )

    def _layer_data_for_area(self, area: ComparisonArea, layer: LayerConfig) -> LayerData:
        key = (area.area_id, layer.layer_id)
        version = (area.polygon.version, self._data_versions.get(layer.layer_id, 0))
        cached = self._cache.get(key)
        if cached is not None and cached[0] == version:
            logger.debug(f"Cache hit for {area.area_id}/{layer.layer_id}")
            return cached[1]
        data = self._compute_layer(layer, area.polygon)
        self._cache[key] = (version, data)
        return data

    def recompute_area(self, area_id: str) -> ComparisonArea:
        """Re-clip and re-stat every active layer for one area.

        The area's repository is rebuilt from the active layers only, so
        deactivated layers drop out of its data.

        Raises:
            AreaNotFoundError: If the id is unknown.
        """
        area = self.manager.require_area(area_id)
        repo = LayerDataRepository(
            self._layer_data_for_area(area, layer) for layer in self.active_layers
        )
        self.manager.set_layer_data(area_id, repo)
        return self.manager.require_area(area_id)

    def recompute_all(self) -> None:
        for area in self.manager.areas:
            self.recompute_area(area.area_id)
        if self._selection is not None:
            self._selection_data = LayerDataRepository(
                self._compute_layer(layer, self._selection) for layer in self.active_layers
            )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def comparison_matrix(self, strategy: str = "manual") -> ComparisonMatrix:
        return self.manager.build_comparison_matrix(self.active_layers, strategy)

    def quality(self, area_id: Optional[str] = None) -> Optional[DataQuality]:
        """Data quality for one area, or averaged over all areas."""
        targets = self.manager.require_area(area_id) if area_id is not None else self.manager.areas
        return score_quality(targets, self._active)

    def derived_metrics(self, area_id: str) -> DerivedMetrics:
        area = self.manager.require_area(area_id)
        return derive_metrics(area.layer_data, area.polygon.area_m2, self.metrics_config)

    def compare_areas(self, area_a: str, area_b: str) -> list[MetricComparison]:
        """POI totals, density and diversity of area_a relative to area_b."""
        a = self.manager.require_area(area_a)
        b = self.manager.require_area(area_b)
        return compare_area_metrics(
            poi_metrics(a.layer_data, a.polygon.area_km2),
            poi_metrics(b.layer_data, b.polygon.area_km2),
        )

    def insights(self) -> list[Insight]:
        """Observations for the current areas in manual order."""
        return generate_insights(self.manager.sort_by("manual"))

    def clipped_geojson(self, area_id: str, layer_id: str) -> dict:
        """Export an area's clipped layer as a GeoJSON FeatureCollection.

        Raises:
            AreaNotFoundError: If the area id is unknown.
            KeyError: If the layer has no data computed for the area.
        """
        area = self.manager.require_area(area_id)
        data = area.layer_data.get(layer_id)
        if data is None:
            raise KeyError(f"Layer {layer_id} not computed for area {area_id}")
        layer = self.require_layer(layer_id)
        return export_geojson(area.layer_data.clipped_or_raw(layer_id), name=f"{area.name} - {layer.name}")
