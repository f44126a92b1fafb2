"""Comparison area manager — CRUD, ordering and the comparison matrix.

Area lifecycle:
    add_area() -> [update_area_polygon() | set_layer_data() | rename_area()]* -> remove_area()

The area list is an immutable tuple replaced as a whole on every change,
so a reader holding the previous tuple always sees a consistent snapshot.
The manual order is stored separately and is never touched by the name
and size sort strategies.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from loguru import logger

from areascope.areas.models import (
    AREA_COLORS,
    AREA_NAMES,
    DEFAULT_MAX_AREAS,
    ComparisonArea,
    SelectionPolygon,
)
from areascope.errors import AreaNotFoundError, TooManyAreasError
from areascope.geometry.model import Geometry
from areascope.layers.layer import STAT_FIELDS, LayerConfig, LayerStats
from areascope.layers.manifest import GROUPS, sorted_layers
from areascope.layers.repository import LayerDataRepository

SORT_STRATEGIES = ("manual", "name", "size")


# ---------------------------------------------------------------------------
# Comparison matrix
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatrixCell:
    """Stats of one layer in one area, with per-statistic leader flags."""

    area_id: str
    stats: Optional[LayerStats]
    is_max: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "area_id": self.area_id,
            "stats": self.stats.to_dict() if self.stats is not None else None,
            "is_max": dict(self.is_max),
        }


@dataclass(frozen=True)
class MatrixRow:
    layer_id: str
    layer_name: str
    is_custom: bool
    cells: tuple[MatrixCell, ...]

    def to_dict(self) -> dict:
        return {
            "layer_id": self.layer_id,
            "layer_name": self.layer_name,
            "is_custom": self.is_custom,
            "cells": [c.to_dict() for c in self.cells],
        }


@dataclass(frozen=True)
class MatrixGroup:
    group_id: str
    name: str
    rows: tuple[MatrixRow, ...]

    @property
    def active_count(self) -> int:
        return len(self.rows)

    def to_dict(self) -> dict:
        return {
            "group_id": self.group_id,
            "name": self.name,
            "active_count": self.active_count,
            "rows": [r.to_dict() for r in self.rows],
        }


@dataclass(frozen=True)
class ComparisonMatrix:
    """Layer x area statistics table, grouped by layer group."""

    areas: tuple[ComparisonArea, ...]
    groups: tuple[MatrixGroup, ...]

    def to_dict(self) -> dict:
        return {
            "areas": [
                {"id": a.area_id, "name": a.name, "color": list(a.color), "area_m2": a.polygon.area_m2}
                for a in self.areas
            ],
            "groups": [g.to_dict() for g in self.groups],
        }


def flag_maxima(stats_by_area: Sequence[tuple[str, Optional[LayerStats]]]) -> dict[str, dict[str, bool]]:
    """Flag, per statistic, every area holding the row maximum.

    The maximum is taken over areas whose stats carry that statistic;
    ties are all flagged. Areas without the statistic are never flagged.
    """
    flags: dict[str, dict[str, bool]] = {area_id: {} for area_id, _ in stats_by_area}
    for stat in STAT_FIELDS:
        values = [
            (area_id, getattr(stats, stat))
            for area_id, stats in stats_by_area
            if stats is not None and getattr(stats, stat) is not None
        ]
        if not values:
            continue
        best = max(value for _, value in values)
        for area_id, value in values:
            flags[area_id][stat] = value == best
    return flags


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------

class ComparisonAreaManager:
    """Registry of named comparison areas."""

    def __init__(self, max_areas: int = DEFAULT_MAX_AREAS) -> None:
        if max_areas < 1:
            raise ValueError("max_areas must be at least 1")
        self.max_areas = max_areas
        self._areas: tuple[ComparisonArea, ...] = ()
        self._manual_order: tuple[str, ...] = ()
        self._created = 0

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def areas(self) -> tuple[ComparisonArea, ...]:
        """Current areas in creation order (an immutable snapshot)."""
        return self._areas

    @property
    def manual_order(self) -> tuple[str, ...]:
        """The stored manual order (may contain ids of removed areas)."""
        return self._manual_order

    def __len__(self) -> int:
        return len(self._areas)

    def get_area(self, area_id: str) -> Optional[ComparisonArea]:
        for area in self._areas:
            if area.area_id == area_id:
                return area
        return None

    def require_area(self, area_id: str) -> ComparisonArea:
        area = self.get_area(area_id)
        if area is None:
            raise AreaNotFoundError(area_id)
        return area

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _next_color(self) -> tuple[int, int, int, int]:
        used = {area.color for area in self._areas}
        for color in AREA_COLORS:
            if color not in used:
                return color
        return AREA_COLORS[self._created % len(AREA_COLORS)]

    def _next_name(self) -> str:
        used = {area.name for area in self._areas}
        for name in AREA_NAMES:
            if name not in used:
                return name
        return f"Area {self._created + 1}"

    def add_area(self, name: str, polygon: Geometry | SelectionPolygon) -> str:
        """Create an area from a fully-formed polygon.

        Args:
            name: Display name; a default "Area X" name is used when empty.
            polygon: Selection geometry, or a SelectionPolygon with its area.

        Returns:
            The new area id.

        Raises:
            TooManyAreasError: If max_areas areas already exist.
            ValueError: If the polygon is not a Polygon/MultiPolygon.
        """
        if len(self._areas) >= self.max_areas:
            raise TooManyAreasError(self.max_areas)

        selection = (
            polygon if isinstance(polygon, SelectionPolygon)
            else SelectionPolygon.from_geometry(polygon)
        )
        area = ComparisonArea(
            area_id=f"area-{uuid.uuid4().hex[:8]}",
            name=name.strip() if name and name.strip() else self._next_name(),
            color=self._next_color(),
            polygon=selection,
            created_index=self._created,
        )
        self._created += 1
        self._areas = self._areas + (area,)
        self._manual_order = self._effective_order()
        logger.info(f"Added area '{area.name}' ({area.area_id}, {selection.area_km2:.3f} km²)")
        return area.area_id

    def remove_area(self, area_id: str) -> None:
        """Delete an area; other areas keep their colors and relative order.

        Raises:
            AreaNotFoundError: If the id is unknown.
        """
        area = self.require_area(area_id)
        self._areas = tuple(a for a in self._areas if a.area_id != area_id)
        self._manual_order = tuple(i for i in self._manual_order if i != area_id)
        logger.info(f"Removed area '{area.name}' ({area_id})")

    def rename_area(self, area_id: str, name: str) -> None:
        """Rename an area. Names need not be unique.

        Raises:
            AreaNotFoundError: If the id is unknown.
        """
        self._replace(replace(self.require_area(area_id), name=name))

    def update_area_polygon(self, area_id: str, polygon: Geometry) -> SelectionPolygon:
        """Replace an area's polygon, bumping its version.

        Previously computed layer data is discarded; it no longer matches
        the new selection.

        Raises:
            AreaNotFoundError: If the id is unknown.
        """
        area = self.require_area(area_id)
        selection = SelectionPolygon.from_geometry(polygon, version=area.polygon.version + 1)
        self._replace(replace(area, polygon=selection, layer_data=LayerDataRepository()))
        return selection

    def set_layer_data(self, area_id: str, layer_data: LayerDataRepository) -> None:
        """Swap in freshly computed layer data for an area (last write wins)."""
        self._replace(replace(self.require_area(area_id), layer_data=layer_data))

    def clear(self) -> None:
        self._areas = ()
        self._manual_order = ()

    def _replace(self, updated: ComparisonArea) -> None:
        self._areas = tuple(
            updated if a.area_id == updated.area_id else a for a in self._areas
        )

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def _effective_order(self) -> tuple[str, ...]:
        """Stored manual order, minus removed ids, plus missing areas in creation order."""
        current = [a.area_id for a in self._areas]
        current_set = set(current)
        kept = [area_id for area_id in self._manual_order if area_id in current_set]
        kept_set = set(kept)
        missing = [area_id for area_id in current if area_id not in kept_set]
        return tuple(kept + missing)

    def reorder_manual(self, area_id: str, direction: str) -> None:
        """Swap an area with its neighbor in the manual order.

        No-op when the area is already first ("up") or last ("down").

        Raises:
            AreaNotFoundError: If the id is unknown.
            ValueError: If direction is not "up" or "down".
        """
        if direction not in ("up", "down"):
            raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")
        self.require_area(area_id)
        order = list(self._effective_order())
        idx = order.index(area_id)
        new_idx = idx - 1 if direction == "up" else idx + 1
        if new_idx < 0 or new_idx >= len(order):
            return
        order[idx], order[new_idx] = order[new_idx], order[idx]
        self._manual_order = tuple(order)

    def sort_by(self, strategy: str = "manual") -> list[ComparisonArea]:
        """Return areas ordered by strategy without changing stored state.

        manual: stored order, self-healed against removed/added areas
        name:   case-insensitive lexicographic, ties in creation order
        size:   polygon area, largest first, ties in creation order

        Raises:
            ValueError: On an unknown strategy.
        """
        if strategy == "name":
            return sorted(self._areas, key=lambda a: (a.name.casefold(), a.created_index))
        if strategy == "size":
            return sorted(self._areas, key=lambda a: (-a.polygon.area_m2, a.created_index))
        if strategy == "manual":
            by_id = {a.area_id: a for a in self._areas}
            return [by_id[area_id] for area_id in self._effective_order()]
        raise ValueError(f"Unknown sort strategy: {strategy!r}")

    # ------------------------------------------------------------------
    # Comparison matrix
    # ------------------------------------------------------------------

    def build_comparison_matrix(
        self,
        active_layers: Sequence[LayerConfig],
        strategy: str = "manual",
    ) -> ComparisonMatrix:
        """Build the grouped layer x area statistics table.

        Rows follow group priority then layer priority; columns follow the
        sort strategy. Every active layer lands in exactly one group
        (unknown groups fall back to "custom").
        """
        areas = tuple(self.sort_by(strategy))
        known_groups = {g.group_id for g in GROUPS}
        rows_by_group: dict[str, list[MatrixRow]] = {g.group_id: [] for g in GROUPS}

        for layer in sorted_layers(active_layers):
            stats_by_area = []
            for area in areas:
                data = area.layer_data.get(layer.layer_id)
                stats_by_area.append((area.area_id, data.stats if data is not None else None))
            flags = flag_maxima(stats_by_area)
            cells = tuple(
                MatrixCell(area_id=area_id, stats=stats, is_max=flags[area_id])
                for area_id, stats in stats_by_area
            )
            group_id = layer.group if layer.group in known_groups else "custom"
            rows_by_group[group_id].append(
                MatrixRow(
                    layer_id=layer.layer_id,
                    layer_name=layer.name,
                    is_custom=layer.is_custom,
                    cells=cells,
                )
            )

        groups = tuple(
            MatrixGroup(group_id=g.group_id, name=g.name, rows=tuple(rows_by_group[g.group_id]))
            for g in sorted(GROUPS, key=lambda g: g.priority)
            if rows_by_group[g.group_id]
        )
        return ComparisonMatrix(areas=areas, groups=groups)
