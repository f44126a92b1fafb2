"""LayerDataRepository — read-only mapping of layer id to LayerData.

Centralizes the "clipped features, falling back to raw features" lookup so
aggregators never repeat it. Repositories are immutable; with_layer() and
without() return new instances so an area's data can be swapped atomically.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Iterable, Iterator, Optional

from areascope.layers.layer import EMPTY_COLLECTION, FeatureCollection, LayerData


class LayerDataRepository(Mapping):
    """Immutable layer id -> LayerData mapping."""

    def __init__(self, entries: Iterable[LayerData] = ()) -> None:
        self._data: dict[str, LayerData] = {entry.layer_id: entry for entry in entries}

    def __getitem__(self, layer_id: str) -> LayerData:
        return self._data[layer_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"LayerDataRepository({sorted(self._data)})"

    def get(self, layer_id: str, default: Optional[LayerData] = None) -> Optional[LayerData]:
        return self._data.get(layer_id, default)

    def clipped_or_raw(self, layer_id: str) -> FeatureCollection:
        """Clipped features when present, otherwise raw features.

        Returns an empty collection for layers without data.
        """
        data = self._data.get(layer_id)
        if data is None:
            return EMPTY_COLLECTION
        if data.clipped_features is not None:
            return data.clipped_features
        return data.features

    def feature_count(self, layer_id: str) -> int:
        return len(self.clipped_or_raw(layer_id))

    def with_layer(self, data: LayerData) -> "LayerDataRepository":
        """Return a new repository with one entry added or replaced."""
        entries = dict(self._data)
        entries[data.layer_id] = data
        return LayerDataRepository(entries.values())

    def without(self, layer_id: str) -> "LayerDataRepository":
        return LayerDataRepository(v for k, v in self._data.items() if k != layer_id)
